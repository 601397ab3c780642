"""
Skill match scoring between a job's required skills and a candidate's skills.

Each required skill is worth 3 points. A candidate at or above the required
level earns all 3; a candidate below it earns points equal to their own level
(BEGINNER=1, INTERMEDIATE=2). Missing skills earn nothing. The total is
normalized by 3 points per required skill, giving a score in [0, 1].
"""

from typing import Iterable, Union
from app.models.skill import SkillLevel

MAX_LEVEL_SCORE = 3


def _level(value: Union[SkillLevel, str]) -> SkillLevel:
    return value if isinstance(value, SkillLevel) else SkillLevel(value)


def level_score(held: Union[SkillLevel, str], required: Union[SkillLevel, str]) -> int:
    """Points earned for one required skill the candidate holds."""
    held_rank = _level(held).rank
    if held_rank >= _level(required).rank:
        return MAX_LEVEL_SCORE
    return held_rank


def calculate_skill_match(required_skills: Iterable, held_skills: Iterable) -> float:
    """
    Score how well held skills satisfy required skills.

    Args:
        required_skills: Items with skill_id and level (e.g. JobSkill rows)
        held_skills: Items with skill_id and level (e.g. UserSkill rows)

    Returns:
        Score between 0.0 and 1.0; 0.0 when either side is empty
    """
    required = list(required_skills)
    held = {skill.skill_id: skill.level for skill in held_skills}

    if not required or not held:
        return 0.0

    total = 0
    for job_skill in required:
        held_level = held.get(job_skill.skill_id)
        if held_level is None:
            continue
        total += level_score(held_level, job_skill.level)

    return total / (len(required) * MAX_LEVEL_SCORE)
