"""Sanity checks for aggregates and win probabilities."""

import math

from .models import PlayerContribution, RosterAggregate


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def validate_contribution(contribution: PlayerContribution) -> list[str]:
    """
    Check that a starter's contribution is plausible.

    Sanity checks:
    - Actual and projected points are finite numbers
    - Points in a reasonable range (-20 to 100)
    - Weighted values never exceed their unweighted source

    Args:
        contribution: PlayerContribution to validate

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []
    pid = contribution.player_id

    for label, value in (
        ('actual', contribution.actual_points),
        ('projected', contribution.projected_points),
    ):
        if not _finite(value):
            warnings.append(f'{pid} has non-finite {label} points: {value!r}')
            continue
        if value > 100:
            warnings.append(f'{pid} has {value:.1f} {label} pts (unusually high - check scoring)')
        elif value < -20:
            warnings.append(f'{pid} has {value:.1f} {label} pts (unusually low - check scoring)')

    if _finite(contribution.actual_points) and abs(contribution.weighted_actual) > abs(contribution.actual_points):
        warnings.append(f'{pid} weighted actual exceeds actual points')
    if _finite(contribution.projected_points) and abs(contribution.weighted_projected) > abs(contribution.projected_points):
        warnings.append(f'{pid} weighted projection exceeds projected points')

    return warnings


def validate_aggregate(label: str, aggregate: RosterAggregate, num_starters: int) -> list[str]:
    """
    Check that a roster aggregate is internally consistent.

    Sanity checks:
    - One contribution per starter
    - Totals match the sum of weighted contributions (within 0.01)
    - Combined total equals actual + projected
    - Totals in a reasonable range (-50 to 400)

    Args:
        label: Roster identifier used in messages
        aggregate: RosterAggregate to validate
        num_starters: Number of starters in the lineup

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []
    contributions = aggregate.player_contributions

    if len(contributions) != num_starters:
        warnings.append(f'{label} has {len(contributions)} contributions for {num_starters} starters')

    for contribution in contributions:
        warnings.extend(validate_contribution(contribution))

    actual_sum = sum(c.weighted_actual for c in contributions)
    projected_sum = sum(c.weighted_projected for c in contributions)
    if abs(actual_sum - aggregate.total_actual) > 0.01:
        warnings.append(
            f'{label} actual total ({aggregate.total_actual:.2f}) != sum of players ({actual_sum:.2f})'
        )
    if abs(projected_sum - aggregate.total_projected) > 0.01:
        warnings.append(
            f'{label} projected total ({aggregate.total_projected:.2f}) != sum of players ({projected_sum:.2f})'
        )

    if aggregate.total_combined != aggregate.total_actual + aggregate.total_projected:
        warnings.append(f'{label} combined total is not actual + projected')

    if not -50 <= aggregate.total_combined <= 400:
        warnings.append(f'{label} combined total {aggregate.total_combined:.1f} is out of range')

    return warnings


def validate_probability(value: float) -> list[str]:
    """Check a win probability is a finite percentage."""
    if not _finite(value):
        return [f'Win probability is not a finite number: {value!r}']
    if not 0 <= value <= 100:
        return [f'Win probability {value:.2f} is outside [0, 100]']
    return []
