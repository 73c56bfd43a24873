"""Boundary validation for cap table snapshots.

The calculation functions assume well-formed input: every reference
resolves, issued never exceeds authorized, grants fit in the option pools.
This module checks those assumptions before records reach the engine and is
independent of the calculation code.

Two layers:
    1. Schema: field types and ranges, enforced by the Pydantic models
       (``validate_payload`` turns a raw mapping into a snapshot)
    2. Business rules: cross-record checks (``validate_snapshot``)

Business-rule findings are either errors (the snapshot is unusable) or
warnings (suspicious but computable). Strict mode promotes warnings of
severity "warning" to errors.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import ValidationError

from .config import get_settings
from .schemas import CapTableSnapshot, DomainModel

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================

class ValidationWarning(DomainModel):
    """A non-fatal finding, addressed by a dotted record path."""

    path: str
    message: str
    severity: Literal["warning", "info"] = "warning"


class ValidationResult(DomainModel):
    valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[ValidationWarning, ...] = ()


# =============================================================================
# Business rules
# =============================================================================

def _duplicate_id_errors(snapshot: CapTableSnapshot) -> List[str]:
    all_ids = [
        *(s.id for s in snapshot.stakeholders),
        *(sc.id for sc in snapshot.security_classes),
        *(i.id for i in snapshot.issuances),
        *(g.id for g in snapshot.option_grants),
        *(s.id for s in snapshot.safes),
    ]
    return [
        f"Duplicate ID found: {record_id} appears {count} times"
        for record_id, count in Counter(all_ids).items()
        if count > 1
    ]


def _reference_errors(snapshot: CapTableSnapshot) -> List[str]:
    stakeholder_ids = {s.id for s in snapshot.stakeholders}
    class_ids = {sc.id for sc in snapshot.security_classes}
    errors: List[str] = []

    for idx, issuance in enumerate(snapshot.issuances):
        if issuance.stakeholder_id not in stakeholder_ids:
            errors.append(f"issuances[{idx}]: Invalid stakeholder_id reference: {issuance.stakeholder_id}")
        if issuance.security_class_id not in class_ids:
            errors.append(
                f"issuances[{idx}]: Invalid security_class_id reference: {issuance.security_class_id}"
            )

    for idx, grant in enumerate(snapshot.option_grants):
        if grant.stakeholder_id not in stakeholder_ids:
            errors.append(f"option_grants[{idx}]: Invalid stakeholder_id reference: {grant.stakeholder_id}")

    for idx, safe in enumerate(snapshot.safes):
        if safe.stakeholder_id not in stakeholder_ids:
            errors.append(f"safes[{idx}]: Invalid stakeholder_id reference: {safe.stakeholder_id}")

    return errors


def _capacity_errors(snapshot: CapTableSnapshot) -> List[str]:
    errors: List[str] = []

    issued_by_class: Dict[str, Decimal] = {}
    for issuance in snapshot.issuances:
        issued_by_class[issuance.security_class_id] = (
            issued_by_class.get(issuance.security_class_id, Decimal("0")) + issuance.qty
        )

    for sc in snapshot.security_classes:
        if sc.kind == "OPTION_POOL":
            continue
        issued = issued_by_class.get(sc.id, Decimal("0"))
        if issued > sc.authorized:
            errors.append(
                f"Security class {sc.label}: Issued shares ({issued}) exceed authorized ({sc.authorized})"
            )

    total_granted = sum((g.qty for g in snapshot.option_grants), Decimal("0"))
    pool_authorized = sum((pool.authorized for pool in snapshot.option_pools()), Decimal("0"))
    if total_granted > pool_authorized:
        errors.append(
            f"Total option grants ({total_granted}) exceed option pool authorized ({pool_authorized})"
        )

    return errors


def _warnings(snapshot: CapTableSnapshot) -> List[ValidationWarning]:
    warnings: List[ValidationWarning] = []

    for idx, grant in enumerate(snapshot.option_grants):
        if grant.vesting and grant.vesting.start < grant.grant_date:
            warnings.append(ValidationWarning(
                path=f"option_grants[{idx}].vesting.start",
                message="Vesting start date is before grant date",
            ))

    for idx, safe in enumerate(snapshot.safes):
        if not safe.cap and not safe.discount:
            warnings.append(ValidationWarning(
                path=f"safes[{idx}]",
                message="SAFE has neither cap nor discount specified",
            ))

    holders = {
        *(i.stakeholder_id for i in snapshot.issuances),
        *(g.stakeholder_id for g in snapshot.option_grants),
        *(s.stakeholder_id for s in snapshot.safes),
    }
    for stakeholder in snapshot.stakeholders:
        if stakeholder.id not in holders:
            warnings.append(ValidationWarning(
                path=f"stakeholders.{stakeholder.id}",
                message=f'Stakeholder "{stakeholder.name}" has no equity',
                severity="info",
            ))

    formation_date = snapshot.company.formation_date
    if formation_date is not None:
        for idx, issuance in enumerate(snapshot.issuances):
            if issuance.issue_date < formation_date:
                warnings.append(ValidationWarning(
                    path=f"issuances[{idx}].issue_date",
                    message="Issuance date is before company formation date",
                ))

    return warnings


def validate_snapshot(snapshot: CapTableSnapshot, strict: Optional[bool] = None) -> ValidationResult:
    """Check cross-record business rules.

    Args:
        snapshot: Snapshot to check
        strict: Promote "warning" findings to errors. Defaults to the
            ``CAPTABLE_STRICT_VALIDATION`` setting.

    Returns:
        ValidationResult; ``valid`` is False if any error was found.
    """
    if strict is None:
        strict = get_settings().strict_validation

    errors = _duplicate_id_errors(snapshot) + _reference_errors(snapshot) + _capacity_errors(snapshot)
    warnings = _warnings(snapshot)

    if strict:
        errors.extend(f"{w.path}: {w.message}" for w in warnings if w.severity == "warning")
        warnings = [w for w in warnings if w.severity != "warning"]

    if errors:
        logger.info("Snapshot validation failed with %d errors", len(errors))

    return ValidationResult(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def _format_pydantic_errors(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"])
        messages.append(f"{path}: {error['msg']}")
    return messages


def parse_snapshot(data: Mapping[str, Any]) -> CapTableSnapshot:
    """Build a snapshot from a raw mapping (raises pydantic.ValidationError)."""
    return CapTableSnapshot.model_validate(data)


def validate_payload(data: Mapping[str, Any], strict: Optional[bool] = None) -> ValidationResult:
    """Schema-validate a raw mapping, then apply the business rules."""
    try:
        snapshot = parse_snapshot(data)
    except ValidationError as exc:
        return ValidationResult(valid=False, errors=tuple(_format_pydantic_errors(exc)))
    return validate_snapshot(snapshot, strict=strict)
