import logging
import re
from typing import Optional, List, Dict, Any
from flask import Flask, request, Response
from fakecloud.core import wire
from fakecloud.core.errors import AccessPointNotFound, DuplicateListener, ListenerNotFound, ValidationError
from fakecloud.core.params import QueryParams, member_key
from fakecloud.core.server import FakeServer
from fakecloud.core.validator import (
    validate_required, validate_composition, require_int, lb_exists, instance_exists,
)
from fakecloud.db.models import LoadBalancer, Listener, HealthCheck, Instance, InstanceState, Tag
from fakecloud.db.store import ElbStore

logger = logging.getLogger(__name__)

DEFAULT_DNS_SUFFIX = "us-east-1.elb.amazonaws.com"

ZONES_OR_SUBNETS = [("AvailabilityZones.member.1", "Subnets.member.1")]
LISTENER_FIELDS = ["InstancePort", "InstanceProtocol", "LoadBalancerPort", "SSLCertificateId"]
HEALTH_CHECK_FIELDS = {
    "healthy_threshold": "HealthCheck.HealthyThreshold",
    "interval": "HealthCheck.Interval",
    "timeout": "HealthCheck.Timeout",
    "unhealthy_threshold": "HealthCheck.UnhealthyThreshold",
}

TCP_TARGET = re.compile(r"TCP:\d+")
PATH_TARGET = re.compile(r"\w+:\d+/\S*")

Result = Optional[Dict[str, Any]]


# --- Request parsing ---

def parse_listeners(params: QueryParams) -> List[Listener]:
    """Listeners.member.N, read until the first member without a Protocol."""
    listeners = []
    records = params.member_records("Listeners", "Protocol", LISTENER_FIELDS)
    for index, record in enumerate(records, start=1):
        key = member_key("Listeners", index)
        listeners.append(Listener(
            protocol=record["Protocol"].upper(),
            instance_protocol=record["InstanceProtocol"].upper(),
            load_balancer_port=require_int(params, f"{key}.LoadBalancerPort"),
            instance_port=require_int(params, f"{key}.InstancePort"),
            ssl_certificate_id=record["SSLCertificateId"],
        ))
    return listeners


def parse_health_check(params: QueryParams, defaults: HealthCheck = None) -> HealthCheck:
    defaults = defaults or HealthCheck()
    values = {
        attr: require_int(params, field, default=getattr(defaults, attr))
        for attr, field in HEALTH_CHECK_FIELDS.items()
    }
    return HealthCheck(target=params.get("HealthCheck.Target") or defaults.target, **values)


def parse_instance_ids(params: QueryParams) -> List[str]:
    return [record["InstanceId"] for record in params.member_records("Instances", "InstanceId")]


def check_listener_ports(existing: List[Listener], listeners: List[Listener]) -> None:
    """A load-balancer port may carry one listener, across and within requests."""
    taken = {listener.load_balancer_port for listener in existing}
    for listener in listeners:
        if listener.load_balancer_port in taken:
            raise DuplicateListener()
        taken.add(listener.load_balancer_port)


def validate_target(target: str) -> None:
    if TCP_TARGET.fullmatch(target) or PATH_TARGET.fullmatch(target):
        return
    raise ValidationError(
        "HealthCheck HTTP Target must specify a port followed by a path that begins with a slash. "
        "e.g. HTTP:80/ping/this/path"
    )


def describe(lb: LoadBalancer) -> Dict[str, Any]:
    """Wire shape of a load balancer as DescribeLoadBalancers returns it."""
    description = wire.to_wire(lb)
    listeners = description.pop("Listeners")
    description["ListenerDescriptions"] = [{"Listener": listener, "PolicyNames": []} for listener in listeners]
    return description


# --- Actions ---

def create_load_balancer(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_composition(params, ZONES_OR_SUBNETS)
    validate_required(params, [
        "Listeners.member.1.InstancePort",
        "Listeners.member.1.InstanceProtocol",
        "Listeners.member.1.Protocol",
        "Listeners.member.1.LoadBalancerPort",
        "LoadBalancerName",
    ])
    name = params.get("LoadBalancerName")
    listeners = parse_listeners(params)
    check_listener_ports([], listeners)
    lb = LoadBalancer(
        load_balancer_name=name,
        dns_name=server.dns_name_for(name),
        scheme=params.get("Scheme") or "internet-facing",
        availability_zones=params.members("AvailabilityZones"),
        subnets=params.members("Subnets"),
        security_groups=params.members("SecurityGroups"),
        listeners=listeners,
        health_check=parse_health_check(params),
    )
    server.store.put_load_balancer(lb)
    logger.info(f"Created load balancer {name} ({lb.dns_name})")
    return {"DNSName": lb.dns_name}


def delete_load_balancer(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName"])
    name = params.get("LoadBalancerName")
    if server.store.remove_load_balancer(name):
        logger.info(f"Deleted load balancer {name}")
    return None


def register_instances(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName", "Instances.member.1.InstanceId"])
    name = params.get("LoadBalancerName")
    lb_exists(server.store, name)
    instance_ids = parse_instance_ids(params)
    for instance_id in instance_ids:
        instance_exists(server.store, instance_id)

    instances = [Instance(instance_id=instance_id) for instance_id in instance_ids]
    server.store.append_instances(name, instances)
    for instance_id in instance_ids:
        server.store.append_instance_state(name, InstanceState(instance_id=instance_id))
    return {"Instances": instances}


def deregister_instances(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName"])
    name = params.get("LoadBalancerName")
    lb_exists(server.store, name)
    instance_ids = parse_instance_ids(params)
    for instance_id in instance_ids:
        instance_exists(server.store, instance_id)

    for instance_id in instance_ids:
        server.store.remove_registered_instance(name, instance_id)
        server.store.remove_instance_state(name, instance_id)
    return {"Instances": server.store.get_load_balancer(name).instances}


def describe_load_balancers(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    # Named filters must exist, but every load balancer is described.
    for name in params.members("LoadBalancerNames"):
        lb_exists(server.store, name)
    return {"LoadBalancerDescriptions": [describe(lb) for lb in server.store.all_load_balancers()]}


def add_tags(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    name = params.get("LoadBalancerNames.member.1")
    tags = [
        Tag(key=record["Key"], value=record["Value"])
        for record in params.member_records("Tags", "Key", ["Value"])
    ]
    server.store.append_tags(name, tags)
    return None


def describe_tags(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    name = params.get("LoadBalancerNames.member.1")
    return {"TagDescriptions": [{"LoadBalancerName": name, "Tags": server.store.tags_for(name)}]}


def create_listeners(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName"])
    name = params.get("LoadBalancerName")
    lb = server.store.get_load_balancer(name)
    if lb is None:
        raise AccessPointNotFound()

    listeners = parse_listeners(params)
    check_listener_ports(lb.listeners, listeners)
    server.store.add_listeners(name, listeners)
    return None


def delete_listeners(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName", "LoadBalancerPorts.member.1"])
    name = params.get("LoadBalancerName")
    if server.store.get_load_balancer(name) is None:
        raise AccessPointNotFound()

    count = len(params.members("LoadBalancerPorts"))
    ports = [require_int(params, member_key("LoadBalancerPorts", index)) for index in range(1, count + 1)]
    server.store.remove_listeners(name, ports)
    return None


def set_listener_ssl_certificate(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName", "LoadBalancerPort", "SSLCertificateId"])
    name = params.get("LoadBalancerName")
    lb = server.store.get_load_balancer(name)
    if lb is None:
        raise AccessPointNotFound()

    port = require_int(params, "LoadBalancerPort")
    for listener in lb.listeners:
        if listener.load_balancer_port == port:
            listener.ssl_certificate_id = params.get("SSLCertificateId")
            return None
    raise ListenerNotFound()


def describe_instance_health(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName"])
    name = params.get("LoadBalancerName")
    lb_exists(server.store, name)
    instance_ids = parse_instance_ids(params)
    for instance_id in instance_ids:
        instance_exists(server.store, instance_id)

    states = server.store.instance_states(name)
    if instance_ids:
        by_id = {state.instance_id: state for state in states}
        states = [by_id.get(instance_id) or InstanceState(instance_id=instance_id) for instance_id in instance_ids]
    return {"InstanceStates": states}


def configure_health_check(server: "ElbServer", params: QueryParams, request_id: str) -> Result:
    validate_required(params, ["LoadBalancerName", "HealthCheck.Target"] + list(HEALTH_CHECK_FIELDS.values()))
    name = params.get("LoadBalancerName")
    lb_exists(server.store, name)
    validate_target(params.get("HealthCheck.Target"))

    health_check = parse_health_check(params)
    server.store.set_health_check(name, health_check)
    return {"HealthCheck": health_check}


ACTIONS = {
    "CreateLoadBalancer": create_load_balancer,
    "DeleteLoadBalancer": delete_load_balancer,
    "RegisterInstancesWithLoadBalancer": register_instances,
    "DeregisterInstancesFromLoadBalancer": deregister_instances,
    "DescribeLoadBalancers": describe_load_balancers,
    "DescribeInstanceHealth": describe_instance_health,
    "ConfigureHealthCheck": configure_health_check,
    "AddTags": add_tags,
    "DescribeTags": describe_tags,
    "CreateLoadBalancerListeners": create_listeners,
    "DeleteLoadBalancerListeners": delete_listeners,
    "SetLoadBalancerListenerSSLCertificate": set_listener_ssl_certificate,
}


class ElbServer(FakeServer):
    """Simulated classic load balancer query API.

    Besides the HTTP surface, the methods below the dispatch section let a
    test seed state the API itself cannot reach: known instances, bare load
    balancers and forced health states.
    """

    name = "elb"

    def __init__(self, host: str = "localhost", port: int = 0, dns_suffix: str = DEFAULT_DNS_SUFFIX):
        self.store = ElbStore()
        self.dns_suffix = dns_suffix
        super().__init__(host, port)

    def _register_routes(self, app: Flask) -> None:
        app.add_url_rule("/", "query", self.handle_query, methods=["GET", "POST"])

    def dns_name_for(self, name: str) -> str:
        return f"{name}-some-aws-stuff.{self.dns_suffix}"

    def handle_query(self) -> Response:
        params = QueryParams(request.values)
        action = params.get("Action")
        with self.store.lock:
            handler = ACTIONS.get(action)
            if handler is None:
                return self.unknown_action(action)
            request_id = self.next_request_id()
            return self.dispatch(
                handler, (params,),
                lambda result: wire.query_response(action, result, request_id),
                request_id
            )

    # --- Test control ---

    def new_instance(self, instance_id: Optional[str] = None) -> str:
        """Makes an instance known to the server, generating ``i-N`` ids by default."""
        with self.store.lock:
            instance_id = instance_id or self.store.new_instance_id()
            self.store.add_instance(instance_id)
        return instance_id

    def remove_instance(self, instance_id: str) -> None:
        """Forgets a known instance. Unknown ids are ignored."""
        with self.store.lock:
            self.store.remove_instance(instance_id)

    def new_load_balancer(self, name: str) -> LoadBalancer:
        """Creates a bare load balancer: no listeners, zones or instances."""
        lb = LoadBalancer(load_balancer_name=name, dns_name=self.dns_name_for(name))
        with self.store.lock:
            self.store.put_load_balancer(lb)
            return lb.model_copy(deep=True)

    def remove_load_balancer(self, name: str) -> None:
        with self.store.lock:
            self.store.remove_load_balancer(name)

    def register_instance(self, instance_id: str, lb_name: str) -> None:
        """Registers without any validation. Does nothing if the load balancer is missing."""
        with self.store.lock:
            if self.store.get_load_balancer(lb_name) is None:
                self.logger.warning(f"Cannot register {instance_id}: load balancer {lb_name} not found")
                return
            self.store.append_instances(lb_name, [Instance(instance_id=instance_id)])
            self.store.append_instance_state(lb_name, InstanceState(instance_id=instance_id))

    def deregister_instance(self, instance_id: str, lb_name: str) -> None:
        with self.store.lock:
            if self.store.get_load_balancer(lb_name) is None:
                return
            self.store.remove_registered_instance(lb_name, instance_id)
            self.store.remove_instance_state(lb_name, instance_id)

    def change_instance_state(self, lb_name: str, state: InstanceState) -> bool:
        """Replaces the stored health state for ``state.instance_id``.

        Returns False when the instance has no state on that load balancer.
        """
        with self.store.lock:
            return self.store.replace_instance_state(lb_name, state.model_copy())

    def load_balancer(self, name: str) -> Optional[LoadBalancer]:
        with self.store.lock:
            lb = self.store.get_load_balancer(name)
            return lb.model_copy(deep=True) if lb else None

    def instance_states(self, lb_name: str) -> List[InstanceState]:
        with self.store.lock:
            return [state.model_copy() for state in self.store.instance_states(lb_name)]
