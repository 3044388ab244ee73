"""Experience point (XP) progression utilities.

One flat curve: every 100 XP is a level. Import `level_for` anywhere level
gating is needed and `grant_experience` wherever XP changes hands, so the
stat grants stay in one place.
"""

XP_PER_LEVEL = 100
HEALTH_PER_LEVEL = 10
ATTACK_PER_LEVEL = 2


def level_for(experience: int) -> int:
    """Return the level for a cumulative ``experience`` total (minimum 1)."""
    return max(0, experience) // XP_PER_LEVEL + 1


def grant_experience(character, amount: int) -> int:
    """Add ``amount`` XP to ``character`` and apply any level-up grants.

    Args:
        character: Anything with ``experience``, ``level``, ``health``,
            ``max_health`` and ``attack`` attributes.
        amount: XP to add. Non-positive amounts are ignored.

    Returns:
        Number of levels gained (0 when no boundary was crossed).

    Notes:
        Grants are computed from the level *before* and *after* this single
        mutation, so recomputing from an unchanged XP total never grants twice.
        Each level gained gives +10 max health, heals the same amount (capped at
        the new maximum) and +2 attack.
    """
    if amount <= 0:
        return 0
    before = character.level
    character.experience += amount
    after = level_for(character.experience)
    gained = max(0, after - before)
    if gained:
        character.max_health += HEALTH_PER_LEVEL * gained
        character.health = min(character.max_health, character.health + HEALTH_PER_LEVEL * gained)
        character.attack += ATTACK_PER_LEVEL * gained
    character.level = after
    return gained


def halve_experience(character) -> None:
    """Death-penalty XP loss; level follows the formula and may drop."""
    character.experience = character.experience // 2
    character.level = level_for(character.experience)
