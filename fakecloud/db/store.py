import threading
from collections import defaultdict
from typing import Optional, List, Dict, Iterable
from fakecloud.db.models import (
    LoadBalancer, Listener, HealthCheck, Instance, InstanceState, Tag, ResourceRecordSet,
)


# --- Load balancer resources ---

class ElbStore:
    """In-memory state of the load-balancer API.

    Nothing here locks on its own. The dispatcher holds ``lock`` for the
    whole of a request, so a handler always sees a settled store.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.load_balancers: Dict[str, LoadBalancer] = {}
        self.instances: List[str] = [] # Known instance ids
        self.instance_count = 0
        self._instance_states: Dict[str, List[InstanceState]] = defaultdict(list)
        self._tags: Dict[str, List[Tag]] = defaultdict(list)

    # Load balancers

    def put_load_balancer(self, lb: LoadBalancer) -> LoadBalancer:
        """Stores a load balancer, replacing any with the same name."""
        self.load_balancers[lb.load_balancer_name] = lb
        return lb

    def get_load_balancer(self, name: str) -> Optional[LoadBalancer]:
        return self.load_balancers.get(name)

    def all_load_balancers(self) -> List[LoadBalancer]:
        return list(self.load_balancers.values())

    def remove_load_balancer(self, name: str) -> bool:
        """Removes a load balancer along with its health states and tags."""
        self._instance_states.pop(name, None)
        self._tags.pop(name, None)
        return self.load_balancers.pop(name, None) is not None

    # Known instances

    def new_instance_id(self) -> str:
        self.instance_count += 1
        return f"i-{self.instance_count}"

    def add_instance(self, instance_id: str) -> None:
        self.instances.append(instance_id)

    def has_instance(self, instance_id: str) -> bool:
        return instance_id in self.instances

    def remove_instance(self, instance_id: str) -> None:
        if instance_id in self.instances:
            _swap_remove(self.instances, self.instances.index(instance_id))

    # Registered instances

    def append_instances(self, lb_name: str, instances: Iterable[Instance]) -> None:
        self.load_balancers[lb_name].instances.extend(instances)

    def remove_registered_instance(self, lb_name: str, instance_id: str) -> None:
        """Order-preserving removal of the first matching registration."""
        instances = self.load_balancers[lb_name].instances
        for index, instance in enumerate(instances):
            if instance.instance_id == instance_id:
                del instances[index]
                return

    # Instance health states

    def instance_states(self, lb_name: str) -> List[InstanceState]:
        return list(self._instance_states.get(lb_name, []))

    def append_instance_state(self, lb_name: str, state: InstanceState) -> None:
        self._instance_states[lb_name].append(state)

    def remove_instance_state(self, lb_name: str, instance_id: str) -> None:
        """Moves the last state into the removed slot.

        The order of the remaining states is not preserved.
        """
        states = self._instance_states.get(lb_name, [])
        for index, state in enumerate(states):
            if state.instance_id == instance_id:
                _swap_remove(states, index)
                return

    def replace_instance_state(self, lb_name: str, state: InstanceState) -> bool:
        states = self._instance_states.get(lb_name, [])
        for index, existing in enumerate(states):
            if existing.instance_id == state.instance_id:
                states[index] = state
                return True
        return False

    # Listeners and health check

    def set_health_check(self, lb_name: str, health_check: HealthCheck) -> None:
        self.load_balancers[lb_name].health_check = health_check

    def add_listeners(self, lb_name: str, listeners: Iterable[Listener]) -> None:
        self.load_balancers[lb_name].listeners.extend(listeners)

    def remove_listeners(self, lb_name: str, ports: Iterable[int]) -> None:
        lb = self.load_balancers[lb_name]
        ports = set(ports)
        lb.listeners = [listener for listener in lb.listeners if listener.load_balancer_port not in ports]

    # Tags

    def append_tags(self, lb_name: str, tags: Iterable[Tag]) -> None:
        self._tags[lb_name].extend(tags)

    def tags_for(self, lb_name: str) -> List[Tag]:
        return list(self._tags.get(lb_name, []))


# --- DNS record sets ---

class RecordSetStore:
    """Flat, ordered list of record sets (no hosted zone partitioning)."""

    def __init__(self):
        self.lock = threading.Lock()
        self.records: List[ResourceRecordSet] = []

    def append(self, record: ResourceRecordSet) -> None:
        self.records.append(record)

    def delete_by_name(self, name: str) -> int:
        """Removes every record with this name, returns how many went."""
        kept = [record for record in self.records if record.name != name]
        removed = len(self.records) - len(kept)
        self.records = kept
        return removed

    def all(self) -> List[ResourceRecordSet]:
        return list(self.records)


def _swap_remove(items: list, index: int) -> None:
    items[index] = items[-1]
    items.pop()
