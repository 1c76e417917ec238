import pytest
from fakecloud.core.errors import ValidationError, LoadBalancerNotFound, InvalidInstance
from fakecloud.core.params import QueryParams
from fakecloud.core.validator import (
    validate_required, validate_composition, require_int, lb_exists, instance_exists,
)
from fakecloud.db.models import LoadBalancer
from fakecloud.db.store import ElbStore

PAIR = [('AvailabilityZones.member.1', 'Subnets.member.1')]


def test_validate_required_passes():
    params = QueryParams({'A': '1', 'B': '2'})
    validate_required(params, ['A', 'B'])


def test_validate_required_names_first_missing_field():
    """Validation stops at the first missing field in the given order"""
    params = QueryParams({'B': '2'})
    with pytest.raises(ValidationError) as exc_info:
        validate_required(params, ['A', 'B', 'C'])
    assert exc_info.value.message == 'A is required.'
    assert exc_info.value.code == 'ValidationError'
    assert exc_info.value.status_code == 400


def test_validate_composition_both_present():
    params = QueryParams({'AvailabilityZones.member.1': 'us-east-1a', 'Subnets.member.1': 'subnet-1'})
    with pytest.raises(ValidationError) as exc_info:
        validate_composition(params, PAIR)
    assert 'Only one of AvailabilityZones.member.1 or Subnets.member.1 may be specified' == exc_info.value.message


def test_validate_composition_neither_present():
    with pytest.raises(ValidationError) as exc_info:
        validate_composition(QueryParams({}), PAIR)
    assert 'Either AvailabilityZones.member.1 or Subnets.member.1 must be specified' == exc_info.value.message


@pytest.mark.parametrize('field', ['AvailabilityZones.member.1', 'Subnets.member.1'])
def test_validate_composition_exactly_one(field):
    validate_composition(QueryParams({field: 'x'}), PAIR)


def test_require_int():
    params = QueryParams({'Port': '443', 'Bad': 'eighty'})
    assert require_int(params, 'Port') == 443
    assert require_int(params, 'Missing', default=7) == 7
    with pytest.raises(ValidationError):
        require_int(params, 'Bad')
    with pytest.raises(ValidationError) as exc_info:
        require_int(params, 'Missing')
    assert exc_info.value.message == 'Missing is required.'


def test_lb_exists():
    store = ElbStore()
    store.put_load_balancer(LoadBalancer(load_balancer_name='lb-1'))
    lb_exists(store, 'lb-1')
    with pytest.raises(LoadBalancerNotFound) as exc_info:
        lb_exists(store, 'lb-2')
    assert exc_info.value.message == "There is no ACTIVE Load Balancer named 'lb-2'"


def test_instance_exists():
    store = ElbStore()
    store.add_instance('i-1')
    instance_exists(store, 'i-1')
    with pytest.raises(InvalidInstance) as exc_info:
        instance_exists(store, 'i-9')
    assert exc_info.value.code == 'InvalidInstance'
    assert '"i-9"' in exc_info.value.message
