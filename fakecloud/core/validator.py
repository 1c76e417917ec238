from typing import Iterable, Tuple
from fakecloud.core.errors import ValidationError, LoadBalancerNotFound, InvalidInstance
from fakecloud.core.params import QueryParams
from fakecloud.db.store import ElbStore


def validate_required(params: QueryParams, fields: Iterable[str]) -> None:
    """Raises ValidationError naming the first empty field, in order."""
    for field in fields:
        if not params.has(field):
            raise ValidationError(f"{field} is required.")


def validate_composition(params: QueryParams, pairs: Iterable[Tuple[str, str]]) -> None:
    """Exactly one field of each pair must be present.

    e.g. ``[("AvailabilityZones.member.1", "Subnets.member.1")]``
    """
    for first, second in pairs:
        if params.has(first) and params.has(second):
            raise ValidationError(f"Only one of {first} or {second} may be specified")
        if not params.has(first) and not params.has(second):
            raise ValidationError(f"Either {first} or {second} must be specified")


def require_int(params: QueryParams, field: str, default: int = None) -> int:
    """Reads an integer field; falls back to ``default`` only when absent."""
    value = params.get(field)
    if not value:
        if default is None:
            raise ValidationError(f"{field} is required.")
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Invalid value '{value}' for {field}, an integer is expected.")


def lb_exists(store: ElbStore, name: str) -> None:
    if store.get_load_balancer(name) is None:
        raise LoadBalancerNotFound(name)


def instance_exists(store: ElbStore, instance_id: str) -> None:
    if not store.has_instance(instance_id):
        raise InvalidInstance(instance_id)
