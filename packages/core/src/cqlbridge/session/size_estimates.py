from typing import List

from cqlbridge_sdk import SizeEstimate, UnsupportedSchemaError
from cqlbridge.common.resilience import ResilientExecutor

SYSTEM = "system"
SIZE_ESTIMATES = "size_estimates"

_SELECT_SIZE_ESTIMATES = (
    "SELECT range_start, range_end, mean_partition_size, partitions_count "
    f"FROM {SYSTEM}.{SIZE_ESTIMATES} WHERE keyspace_name = %s AND table_name = %s"
)


class SizeEstimateReader:
    """Reads the per token range size estimates the cluster maintains for each table."""

    def __init__(self, executor: ResilientExecutor):
        self._executor = executor

    def check_capability(self) -> None:
        """
        Raises:
            UnsupportedSchemaError: if the cluster has no size estimates table.
        """
        keyspace = self._executor.run(lambda session: session.get_keyspace(SYSTEM))
        if keyspace is None:
            raise RuntimeError("system keyspace metadata must not be null")
        if keyspace.get_table(SIZE_ESTIMATES) is None:
            raise UnsupportedSchemaError("Cassandra versions prior to 2.1.5 are not supported")

    def get_size_estimates(self, keyspace_name: str, table_name: str) -> List[SizeEstimate]:
        self.check_capability()
        result_rows = self._executor.run(
            lambda session: list(session.execute(_SELECT_SIZE_ESTIMATES, [keyspace_name, table_name]))
        )
        return [
            SizeEstimate(
                range_start=row.range_start,
                range_end=row.range_end,
                mean_partition_size=row.mean_partition_size,
                partitions_count=row.partitions_count,
            )
            for row in result_rows
        ]
