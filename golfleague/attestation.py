"""Attestation state machine for submitted rounds.

A round starts as ``submitted`` with no attestations, becomes ``attested``
once a peer confirms it, and ``valid`` when the attestation count reaches the
threshold. An administrator override pins validity either way and takes
precedence over the attestation count from then on.

Every operation here is a pure transform: it takes a Round and returns a new
one, so storage can apply it inside a single transaction and safely re-run it
against freshly read state after a conflict.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum

from .constants import ATTESTATION_METHOD_QR, ATTESTATION_THRESHOLD
from .exceptions import (
    DuplicateAttestationError,
    MissingOverrideReasonError,
    SelfAttestationError,
)
from .models import AdminOverride, Attestation, Round

logger = logging.getLogger('golfleague.attestation')


class RoundStatus(str, Enum):
    SUBMITTED = 'submitted'
    ATTESTED = 'attested'
    VALID = 'valid'
    ADMIN_INVALIDATED = 'admin_invalidated'


@dataclass(frozen=True)
class AttestationOutcome:
    """Result of recording an attestation."""
    round: Round
    became_valid: bool


def compute_validity(
    attestation_count: int,
    override: AdminOverride | None,
    threshold: int = ATTESTATION_THRESHOLD,
) -> bool:
    """Validity from the attestation count, unless an override is active."""
    if override is not None:
        return override.force_valid
    return attestation_count >= threshold


def round_status(round_: Round, threshold: int = ATTESTATION_THRESHOLD) -> RoundStatus:
    """Classify a round into its attestation state."""
    if round_.override is not None:
        return RoundStatus.VALID if round_.override.force_valid else RoundStatus.ADMIN_INVALIDATED
    if round_.attestation_count >= threshold:
        return RoundStatus.VALID
    if round_.attestation_count > 0:
        return RoundStatus.ATTESTED
    return RoundStatus.SUBMITTED


def attestations_needed(round_: Round, threshold: int = ATTESTATION_THRESHOLD) -> int:
    """Attestations still missing before the round is naturally valid."""
    return max(threshold - round_.attestation_count, 0)


def check_attestor(round_: Round, attestor_id: str) -> None:
    """
    Raise if attestor_id may not attest this round.

    Raises:
        SelfAttestationError: attestor owns the round (checked first, in any state)
        DuplicateAttestationError: attestor already attested it
    """
    if attestor_id == round_.player_id:
        raise SelfAttestationError(round_.id, attestor_id)
    if attestor_id in round_.attestor_ids:
        raise DuplicateAttestationError(round_.id, attestor_id)


def record_attestation(
    round_: Round,
    attestor_id: str,
    attestor_name: str,
    timestamp: datetime | None = None,
    method: str = ATTESTATION_METHOD_QR,
    threshold: int = ATTESTATION_THRESHOLD,
) -> AttestationOutcome:
    """
    Append an attestation and recompute validity.

    Args:
        round_: Round as currently stored
        attestor_id: Member confirming the score
        attestor_name: Display name stored with the attestation
        timestamp: When the attestation happened (default: now, UTC)
        method: How the attestation was captured
        threshold: Attestations required for natural validity

    Returns:
        AttestationOutcome with the updated round; became_valid is True only
        on the call that moves the round from not valid to valid.

    Raises:
        SelfAttestationError, DuplicateAttestationError
    """
    check_attestor(round_, attestor_id)

    attestation = Attestation(
        attestor_id=attestor_id,
        attestor_name=attestor_name,
        attested_at=timestamp or datetime.now(timezone.utc),
        method=method,
    )
    attestations = round_.attestations + (attestation,)
    is_valid = compute_validity(len(attestations), round_.override, threshold)
    updated = replace(round_, attestations=attestations, is_valid=is_valid)

    became_valid = is_valid and not round_.is_valid
    if became_valid:
        logger.info(
            f'Round {round_.id} is now valid with {len(attestations)} attestations'
        )
    else:
        logger.debug(
            f'Round {round_.id} attested by {attestor_id} '
            f'({len(attestations)}/{threshold})'
        )

    return AttestationOutcome(round=updated, became_valid=became_valid)


def apply_admin_override(
    round_: Round,
    force_valid: bool,
    note: str,
    admin_id: str = '',
    timestamp: datetime | None = None,
) -> Round:
    """
    Pin a round's validity regardless of its attestation count.

    The override stays in force until another override replaces it.
    Authorization is the caller's job.

    Raises:
        MissingOverrideReasonError: note is empty or whitespace
    """
    if not note or not note.strip():
        raise MissingOverrideReasonError(round_.id)

    override = AdminOverride(
        force_valid=force_valid,
        note=note.strip(),
        admin_id=admin_id,
        overridden_at=timestamp or datetime.now(timezone.utc),
    )
    logger.info(
        f'Round {round_.id} overridden to {"valid" if force_valid else "invalid"} '
        f'by {admin_id or "admin"}: {override.note}'
    )
    return replace(round_, override=override, is_valid=force_valid)
