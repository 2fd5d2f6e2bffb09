"""
Dense region x time grid materialisation.
"""
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from ..domain.entities import CellKey, DenseGridRow, RegionSet, VertexGridRow

class DenseGridBuilder:
    """
    Produces every (region, time bucket) pair of the cross product, in region-set
    order then ascending bucket, carrying the aggregate value or an explicit None.

    Rows are generated lazily; aggregates are merged by CellKey lookup.
    """
    def __init__(self, regions: RegionSet):
        self.regions = regions

    def build(
        self,
        time_buckets: Iterable[datetime],
        cells: Mapping[CellKey, Optional[float]]
    ) -> Iterator[DenseGridRow]:
        buckets = sorted(set(time_buckets))
        for region in self.regions:
            for bucket in buckets:
                yield DenseGridRow(
                    time_bucket=bucket,
                    region=region.name,
                    value=cells.get(CellKey(region.name, bucket))
                )

    def expand_vertices(self, rows: Sequence[DenseGridRow]) -> Iterator[VertexGridRow]:
        """
        Repeats each dense row for every exterior vertex of its region.
        Emission order: region-set order, vertex order, ascending bucket.
        """
        by_region: Dict[str, List[DenseGridRow]] = {}
        for row in rows:
            by_region.setdefault(row.region, []).append(row)

        for region in self.regions:
            region_rows = sorted(by_region.get(region.name, []), key=lambda r: r.time_bucket)
            for order, (x, y) in enumerate(region.vertices):
                for row in region_rows:
                    yield VertexGridRow(
                        time_bucket=row.time_bucket,
                        region=row.region,
                        vertex_order=order,
                        x=x,
                        y=y,
                        value=row.value,
                        bin=row.bin
                    )

def empty_cell_count(rows: Iterable[DenseGridRow]) -> int:
    return sum(1 for row in rows if row.value is None)
