"""Virtual-cluster (tenant) name resolution.

The tenant name is read from one well-known configuration record. The lookup is
best-effort: any failure is logged and collapses to an empty name, which the
streamer still sends as the tenant header.
"""

from dataclasses import dataclass

from vcstream.context import StreamContext
from vcstream.core.interfaces import ConfigLookup
from vcstream.core.logging import get_logger
from vcstream.exceptions import ConfigurationLookupError
from vcstream.models.records import ConfigRecord


logger = get_logger(__name__)

VIRTUAL_CLUSTER_NAME_HEADER = "virtualcluster-name"
VIRTUAL_CLUSTER_NAME_DATA_KEY = "VirtualClusterName"
VIRTUAL_CLUSTER_INFO_NAMESPACE = "kube-system"
VIRTUAL_CLUSTER_INFO_NAME = "virtualcluster-info"


@dataclass(frozen=True)
class TenantLookup:
    """Outcome of a tenant lookup: the name found, or the error that stopped it."""

    name: str = ""
    error: Exception | None = None

    @property
    def found(self) -> bool:
        return self.error is None


class TenantResolver:
    """Reads the virtual-cluster name from the configuration lookup."""

    def __init__(
        self,
        config_lookup: ConfigLookup | None,
        namespace: str = VIRTUAL_CLUSTER_INFO_NAMESPACE,
        name: str = VIRTUAL_CLUSTER_INFO_NAME,
        data_key: str = VIRTUAL_CLUSTER_NAME_DATA_KEY,
    ):
        self.config_lookup = config_lookup
        self.namespace = namespace
        self.name = name
        self.data_key = data_key

    async def lookup(self, context: StreamContext | None = None) -> TenantLookup:
        """Fetch the record and extract the tenant name without raising."""
        if self.config_lookup is None:
            return TenantLookup(
                error=ConfigurationLookupError("no configuration lookup configured")
            )

        try:
            fetch = self.config_lookup.get(self.namespace, self.name)
            record = await (context.run(fetch) if context is not None else fetch)
        except Exception as e:
            return TenantLookup(error=e)

        if not isinstance(record, ConfigRecord):
            return TenantLookup(
                error=ConfigurationLookupError(
                    f"unexpected record type {type(record).__name__}"
                )
            )

        tenant = record.data.get(self.data_key)
        if tenant is None:
            return TenantLookup(
                error=ConfigurationLookupError(
                    f"record {self.namespace}/{self.name} has no {self.data_key} entry"
                )
            )
        return TenantLookup(name=tenant)

    async def resolve(self, context: StreamContext | None = None) -> str:
        """Return the tenant name, or an empty string when it cannot be found."""
        result = await self.lookup(context)
        if not result.found:
            if self.config_lookup is None:
                logger.debug("tenant_lookup_skipped", reason=str(result.error))
            else:
                logger.warning(
                    "tenant_lookup_failed",
                    namespace=self.namespace,
                    name=self.name,
                    error=str(result.error),
                    error_type=type(result.error).__name__,
                )
            return ""

        logger.debug("tenant_resolved", tenant=result.name)
        return result.name


class InMemoryConfigStore:
    """Dict-backed configuration lookup."""

    def __init__(self, records: list[ConfigRecord] | None = None):
        self._records: dict[tuple[str, str], ConfigRecord] = {}
        for record in records or []:
            self.put(record)

    def put(self, record: ConfigRecord) -> None:
        self._records[(record.namespace, record.name)] = record

    def delete(self, namespace: str, name: str) -> None:
        self._records.pop((namespace, name), None)

    async def get(self, namespace: str, name: str) -> ConfigRecord:
        try:
            return self._records[(namespace, name)]
        except KeyError:
            raise ConfigurationLookupError(
                f"record {namespace}/{name} not found",
                details={"namespace": namespace, "name": name},
            ) from None
