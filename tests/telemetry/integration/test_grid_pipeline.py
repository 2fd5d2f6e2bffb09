import csv
import os
import pytest
import pandas as pd
from omegaconf import OmegaConf
from src.common.config.manager import ConfigManager
from src.common.exceptions import FatalInputError
from src.telemetry.application.builder import GridPipelineBuilder
from src.telemetry.infrastructure.sources import ObservationTable
from src.telemetry.infrastructure.timestamps import TimestampNormalizer

SQUARE_A = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]
SQUARE_B = [[10, 0], [20, 0], [20, 10], [10, 10], [10, 0]]

ROWS = [
    # time, vehicle, x, y, speed, deviation
    ("03/12/2019 10:02:00 AM -0800", 1, 2.0, 2.0, 20.0, 1.0),
    ("03/12/2019 10:03:00 AM -0800", 1, 4.0, 4.0, 30.0, 3.0),
    ("03/12/2019 11:10:00 AM -0800", 2, 15.0, 5.0, 10.0, -2.0),
    ("03/12/2019 11:12:00 AM -0800", 2, 16.0, 5.0, 30.0, -4.0),
    ("03/12/2019 12:20:00 PM -0800", 2, 17.0, 5.0, 50.0, 0.0),
    ("garbage", 3, 5.0, 5.0, 25.0, 0.0),
    ("03/12/2019 10:05:00 AM -0800", 3, 50.0, 50.0, 25.0, 0.0),
]

@pytest.fixture
def observation_frame():
    return pd.DataFrame(ROWS, columns=[
        "vehicle_position_date_time", "vehicle_id", "longitude",
        "latitude", "average_speed", "predicted_deviation"
    ])

def make_config(tmp_path, **overrides):
    base = {
        'input': {'regions': {'A': SQUARE_A, 'B': SQUARE_B}},
        'output': {
            'output_dir': str(tmp_path / "grids"),
            'intermediate_path': str(tmp_path / "interim" / "assigned.csv"),
        },
    }
    return ConfigManager.from_dict(OmegaConf.to_container(OmegaConf.merge(base, overrides)))

def run(cfg, frame):
    builder = GridPipelineBuilder(cfg)
    pipeline = builder.build_regions().build_persistence().build_pipeline()
    table = ObservationTable(frame, TimestampNormalizer(), metrics_collector=builder.metrics_collector)
    return builder, pipeline.run(table.read())

def by_key(rows):
    return {(r.region, r.time_bucket.hour): r.value for r in rows}

def test_end_to_end_products(tmp_path, observation_frame):
    _, products = run(make_config(tmp_path), observation_frame)

    assert [b.hour for b in products.time_buckets] == [10, 11, 12]

    # Dense: every region at every hour
    assert len(products.deviation_grid) == 2 * 3
    assert len(products.speed_grid) == 2 * 3
    assert by_key(products.deviation_grid) == {
        ("A", 10): 2.0, ("A", 11): None, ("A", 12): None,
        ("B", 10): None, ("B", 11): -3.0, ("B", 12): 0.0,
    }

    speed = by_key(products.speed_grid)
    assert speed[("A", 10)] == pytest.approx(0.0)
    assert speed[("B", 11)] == pytest.approx(-1 / 3)
    assert speed[("B", 12)] == pytest.approx(2 / 3)
    assert speed[("A", 11)] is None and speed[("B", 10)] is None

    # Null cells carry no bin; valued cells carry a bin containing the value
    for row in products.deviation_grid + products.speed_grid:
        if row.value is None:
            assert row.bin is None
        else:
            assert row.bin.contains(row.value)

    # Vertex expansion: 5 vertices per region x 3 buckets
    assert len(products.deviation_vertices) == 10 * 3
    assert len(products.speed_vertices) == 10 * 3

def test_positions_snapshot(tmp_path, observation_frame):
    _, products = run(make_config(tmp_path), observation_frame)

    snapshots = [
        (p.time_bucket.strftime("%H:%M"), p.vehicle_id, p.longitude, p.latitude)
        for p in products.positions
    ]
    assert snapshots == [
        ("10:00", "1", 2.0, 2.0),
        ("10:05", "1", 4.0, 4.0),
        ("11:10", "2", 15.5, 5.0),
        ("12:20", "2", 17.0, 5.0),
    ]

def test_dropped_records_are_counted(tmp_path, observation_frame):
    _, products = run(make_config(tmp_path), observation_frame)
    metrics = products.metrics

    assert metrics.records_read == 7
    assert metrics.parse_errors == 1
    assert metrics.assignment_misses == 1
    assert metrics.records_dropped == 2
    assert metrics.empty_cells == 3 + 3
    assert metrics.filtered_cells == 0

def test_speed_upper_bound_is_configurable(tmp_path, observation_frame):
    cfg = make_config(tmp_path, speed={'upper_bound': 0.5})
    _, products = run(cfg, observation_frame)

    assert by_key(products.speed_grid)[("B", 12)] is None
    assert products.metrics.filtered_cells == 1
    # the deviation grid is unaffected
    assert by_key(products.deviation_grid)[("B", 12)] == 0.0

def test_degenerate_region_propagates_null(tmp_path, observation_frame):
    frame = observation_frame.copy()
    frame.loc[frame["vehicle_id"] == 2, "average_speed"] = 0.0
    _, products = run(make_config(tmp_path), frame)

    speed = by_key(products.speed_grid)
    assert speed[("B", 11)] is None and speed[("B", 12)] is None
    assert products.metrics.degenerate_regions == 1
    assert all(r.bin is None for r in products.speed_grid if r.region == "B")

def test_output_files(tmp_path, observation_frame):
    _, products = run(make_config(tmp_path), observation_frame)

    names = sorted(os.path.basename(p) for p in products.files)
    assert names == ["deviation_grid.csv", "positions.csv", "speed_grid.csv"]

    with open(tmp_path / "grids" / "deviation_grid.csv", newline='') as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 30
    assert list(rows[0]) == [
        "time_bucket", "region", "vertex_order", "x", "y", "median_deviation", "deviation_bin"
    ]
    empty = [r for r in rows if r["region"] == "A" and r["time_bucket"].startswith("2019-03-12T11")]
    assert len(empty) == 5
    assert all(r["median_deviation"] == "" and r["deviation_bin"] == "" for r in empty)

    with open(tmp_path / "grids" / "positions.csv", newline='') as f:
        positions = list(csv.DictReader(f))
    assert len(positions) == 4

def test_no_observation_inside_regions_is_fatal(tmp_path, observation_frame):
    frame = observation_frame.assign(longitude=500.0)
    with pytest.raises(FatalInputError):
        run(make_config(tmp_path), frame)
    assert not os.path.exists(tmp_path / "grids" / "positions.csv")

def test_empty_observation_set_is_fatal(tmp_path):
    builder = GridPipelineBuilder(make_config(tmp_path))
    pipeline = builder.build_regions().build_pipeline()
    with pytest.raises(FatalInputError):
        pipeline.run([])

def test_repeated_runs_count_from_zero(tmp_path, observation_frame):
    builder = GridPipelineBuilder(make_config(tmp_path))
    pipeline = builder.build_regions().build_persistence().build_pipeline()
    table = ObservationTable(frame=observation_frame, normalizer=TimestampNormalizer(),
                             metrics_collector=builder.metrics_collector)

    first = pipeline.run(table.read()).metrics
    second = pipeline.run(table.read()).metrics
    resumed = pipeline.run_from_store().metrics

    for metrics in (first, second):
        assert metrics.records_read == 7
        assert metrics.parse_errors == 1
        assert metrics.assignment_misses == 1
        assert metrics.empty_cells == 6
    assert resumed.records_read == 0
    assert resumed.assignment_misses == 0
    assert resumed.empty_cells == 6
