import logging
from contextlib import contextmanager
from typing import ClassVar, Dict, Iterator, List, Optional, Type

from prometheus_client import Counter, Summary

from fix_provider_aws.aws_client import AwsClient
from fix_provider_aws.configuration import AwsConfig
from fix_provider_aws.error import UnknownResourceKind
from fix_provider_aws.resource.backup import AwsBackupSelection
from fix_provider_aws.resource.base import AwsProviderResource
from fixlib.types import Json

log = logging.getLogger("fix.providers.aws")

logging.getLogger("boto").setLevel(logging.CRITICAL)

metrics_resource_operation = Summary(
    "fix_provider_aws_resource_operation_seconds",
    "Time it took to run a resource operation",
    ["kind", "operation"],
)
metrics_resource_operation_errors = Counter(
    "fix_provider_aws_resource_operation_errors_total",
    "Failed resource operations",
    ["kind", "operation"],
)

all_resources: List[Type[AwsProviderResource]] = [AwsBackupSelection]


class AwsProvider:
    """
    The resource contract towards the orchestrator.
    Every operation gets and returns plain json: the configuration or the persisted state of one resource.
    An empty id in a returned state means, that the resource does not exist remotely.
    """

    resources: ClassVar[Dict[str, Type[AwsProviderResource]]] = {r.kind: r for r in all_resources}

    def __init__(self, config: AwsConfig, client: Optional[AwsClient] = None) -> None:
        self.config = config
        self.client = client or AwsClient.from_config(config)

    def resource_class(self, kind: str) -> Type[AwsProviderResource]:
        if clazz := self.resources.get(kind):
            return clazz
        raise UnknownResourceKind(kind)

    def schema(self) -> Json:
        return {kind: clazz.schema_json() for kind, clazz in self.resources.items()}

    def required_permissions(self) -> List[str]:
        permissions = {
            spec.iam_permission()
            for clazz in self.resources.values()
            for spec in clazz.called_mutator_apis() + clazz.called_read_apis()
        }
        return sorted(permissions)

    def create(self, kind: str, config: Json) -> Json:
        clazz = self.resource_class(kind)
        with self.__measure(kind, "create"):
            return clazz.create_resource(self.client, config).to_json()

    def read(self, kind: str, state: Json) -> Json:
        clazz = self.resource_class(kind)
        with self.__measure(kind, "read"):
            return clazz.from_values(state).read_resource(self.client).to_json()

    def delete(self, kind: str, state: Json) -> None:
        clazz = self.resource_class(kind)
        with self.__measure(kind, "delete"):
            clazz.from_values(state).delete_resource(self.client)

    def import_state(self, kind: str, import_id: str) -> Json:
        clazz = self.resource_class(kind)
        with self.__measure(kind, "import"):
            return clazz.import_resource(self.client, import_id).to_json()

    @staticmethod
    @contextmanager
    def __measure(kind: str, operation: str) -> Iterator[None]:
        with metrics_resource_operation.labels(kind=kind, operation=operation).time():
            try:
                yield
            except Exception as e:
                log.error(f"{operation} of {kind} failed: {e}")
                metrics_resource_operation_errors.labels(kind=kind, operation=operation).inc()
                raise
