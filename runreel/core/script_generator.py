"""
Script Generator - narration text for achievement videos
"""

import random
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from runreel.models.generation import GenerationInput, OutputFormat, VideoCustomization


class ActivityData(BaseModel):
    """Completed activity being celebrated"""

    id: str
    activity_type: str
    activity_name: str
    distance_km: Optional[float] = None
    duration_seconds: int
    calories_burned: Optional[int] = None
    average_heart_rate: Optional[int] = None
    intensity_level: Optional[int] = None
    notes: Optional[str] = None


# Openers keyed by voice type
_VOICE_OPENERS = {
    "motivational": "Incredible achievement!",
    "encouraging": "Great job today!",
    "calm": "Well done.",
    "excited": "Wow, what a session!",
    "proud": "You should be proud of this one!",
}


def _stats_fragments(activity: ActivityData) -> Dict[str, str]:
    minutes = activity.duration_seconds // 60
    return {
        "distance": f"{activity.distance_km:.2f} kilometers" if activity.distance_km else "",
        "calories": f"{activity.calories_burned} calories" if activity.calories_burned else "",
        "minutes": f"{minutes} minutes",
    }


def _templates(activity: ActivityData, include_stats: bool) -> List[str]:
    name = activity.activity_name
    kind = activity.activity_type.lower()

    if not include_stats:
        return [
            f"You just completed {name}. Your dedication to fitness is truly inspiring!",
            f"What a fantastic {kind} session! You're absolutely crushing your fitness goals!",
            f"Outstanding performance on your {kind} today! Keep up the amazing work!",
        ]

    stats = _stats_fragments(activity)
    distance = stats["distance"]
    calories = stats["calories"]
    minutes = stats["minutes"]
    return [
        f"You just completed {name}"
        f"{f' covering {distance}' if distance else ''} in {minutes}"
        f"{f' and burned {calories}' if calories else ''}. "
        "Your dedication to fitness is truly inspiring!",
        f"What a fantastic {kind} session! {name} completed"
        f"{f' - {distance}' if distance else ''} in {minutes}"
        f"{f' with {calories} burned' if calories else ''}. "
        "You're absolutely crushing your fitness goals!",
        f"Outstanding performance on your {kind} today! "
        f"{f'{distance} completed' if distance else f'{name} finished'} in {minutes}"
        f"{f' burning {calories}' if calories else ''}. "
        "Keep up the amazing work!",
    ]


def generate_activity_script(
    activity: ActivityData,
    customization: Optional[VideoCustomization] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Pick a narration template for an activity

    Args:
        activity: Activity being celebrated
        customization: Voice type selects the opener; include_stats drops numbers
        rng: Random source, injectable for deterministic output

    Returns:
        Narration script
    """
    customization = customization or VideoCustomization()
    chooser = rng or random
    script = chooser.choice(_templates(activity, customization.include_stats))

    if customization.voice_type:
        script = f"{_VOICE_OPENERS[customization.voice_type]} {script}"
    return script


def achievement_to_activity(achievement: Dict[str, Any]) -> ActivityData:
    """
    Convert an achievement row (with optional nested workout) to ActivityData

    Workout distance is stored in meters.
    """
    workout = achievement.get("workout") or {}
    distance_m = workout.get("distance")
    return ActivityData(
        id=str(achievement["id"]),
        activity_type=workout.get("workout_type") or "activity",
        activity_name=achievement.get("description") or "your achievement",
        duration_seconds=int(workout.get("duration") or 0),
        distance_km=distance_m / 1000 if distance_m else None,
        calories_burned=workout.get("calories"),
        average_heart_rate=workout.get("heart_rate_avg"),
        notes=f"Achievement: {achievement.get('description', '')}",
    )


def build_generation_input(
    activity: ActivityData,
    output_format: OutputFormat = OutputFormat.SQUARE,
    customization: Optional[VideoCustomization] = None,
    rng: Optional[random.Random] = None,
) -> GenerationInput:
    return GenerationInput(
        subject_id=activity.id,
        script_text=generate_activity_script(activity, customization, rng),
        output_format=output_format,
        customization=customization,
    )
