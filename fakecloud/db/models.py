from typing import Optional, List
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_pascal
from enum import Enum


class WireModel(BaseModel):
    """Base for resources whose field names follow the AWS wire casing."""

    class Config:
        alias_generator = to_pascal
        populate_by_name = True
        use_enum_values = True # Store enum values as plain strings
        validate_default = True


class InstanceStateName(str, Enum):
    IN_SERVICE = "InService"
    OUT_OF_SERVICE = "OutOfService"
    UNKNOWN = "Unknown"


class ChangeAction(str, Enum):
    CREATE = "CREATE"
    DELETE = "DELETE"
    UPSERT = "UPSERT"


# --- Load balancer API ---

class Listener(WireModel):
    protocol: str
    instance_protocol: str
    load_balancer_port: int
    instance_port: int
    ssl_certificate_id: str = Field(default="", alias="SSLCertificateId")


class HealthCheck(WireModel):
    healthy_threshold: int = 10
    interval: int = 30
    target: str = "TCP:80"
    timeout: int = 5
    unhealthy_threshold: int = 2


class Instance(WireModel):
    instance_id: str


class InstanceState(WireModel):
    instance_id: str
    state: InstanceStateName = InstanceStateName.OUT_OF_SERVICE
    reason_code: str = "Instance"
    description: str = "Instance is in pending state."


class Tag(WireModel):
    key: str
    value: str = ""


class LoadBalancer(WireModel):
    load_balancer_name: str
    dns_name: str = Field(default="", alias="DNSName")
    scheme: str = "internet-facing"
    availability_zones: List[str] = []
    subnets: List[str] = []
    security_groups: List[str] = []
    listeners: List[Listener] = []
    health_check: HealthCheck = Field(default_factory=HealthCheck)
    instances: List[Instance] = []


# --- DNS record set API ---

class ResourceRecord(WireModel):
    value: str


class AliasTarget(WireModel):
    hosted_zone_id: str
    dns_name: str = Field(alias="DNSName")
    evaluate_target_health: bool = False


class ResourceRecordSet(WireModel):
    name: str
    type: str
    set_identifier: Optional[str] = None
    weight: Optional[int] = None
    ttl: Optional[int] = Field(default=None, alias="TTL")
    resource_records: List[ResourceRecord] = []
    alias_target: Optional[AliasTarget] = None


class Change(WireModel):
    action: ChangeAction
    resource_record_set: ResourceRecordSet


class ChangeBatch(WireModel):
    comment: Optional[str] = None
    changes: List[Change] = []
