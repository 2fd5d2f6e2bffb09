import pandas as pd
import numpy as np
import datetime
import json
import random
import os

# Simulation Configuration
NUM_VEHICLES = 40
PINGS_PER_VEHICLE = 300
SERVICE_DATE = datetime.datetime(2019, 3, 12, 5, 0, 0)
OFFSET_SUFFIX = " -0800"

# Four square neighbourhoods tiling a box around downtown Portland,
# plus a margin so some pings fall outside every region.
ORIGIN_LON, ORIGIN_LAT = -122.72, 45.48
CELL = 0.04
REGIONS = {
    "Northwest": (0, 1),
    "Northeast": (1, 1),
    "Southwest": (0, 0),
    "Southeast": (1, 0),
}

def region_features():
    features = []
    for name, (col, row) in REGIONS.items():
        x0 = ORIGIN_LON + col * CELL
        y0 = ORIGIN_LAT + row * CELL
        ring = [[x0, y0], [x0 + CELL, y0], [x0 + CELL, y0 + CELL], [x0, y0 + CELL], [x0, y0]]
        features.append({
            "type": "Feature",
            "properties": {"name": name},
            "geometry": {"type": "Polygon", "coordinates": [ring]},
        })
    return {"type": "FeatureCollection", "features": features}

def generate_data(
    output_file="data/raw/vehicle_positions.csv",
    regions_file="data/regions/neighborhoods.geojson"
):
    print(f"Generating {NUM_VEHICLES * PINGS_PER_VEHICLE} synthetic vehicle position records...")

    data = []
    for vehicle in range(NUM_VEHICLES):
        vehicle_id = str(3000 + vehicle)
        lon = ORIGIN_LON + random.uniform(-0.005, 2 * CELL + 0.005)
        lat = ORIGIN_LAT + random.uniform(-0.005, 2 * CELL + 0.005)
        deviation = random.uniform(-2, 2)
        timestamp = SERVICE_DATE + datetime.timedelta(minutes=random.randint(0, 60))

        for _ in range(PINGS_PER_VEHICLE):
            timestamp += datetime.timedelta(seconds=random.randint(30, 90))
            lon += np.random.normal(0, 0.0015)
            lat += np.random.normal(0, 0.0015)

            # Slower and later during the evening peak
            rush = 16 <= timestamp.hour <= 18
            speed = max(0.0, np.random.normal(18 if rush else 28, 6))
            deviation += np.random.normal(0.15 if rush else -0.05, 0.4)

            data.append({
                "vehicle_position_date_time": timestamp.strftime("%m/%d/%Y %I:%M:%S %p") + OFFSET_SUFFIX,
                "vehicle_id": vehicle_id,
                "longitude": round(lon, 6),
                "latitude": round(lat, 6),
                "average_speed": round(speed, 2),
                "predicted_deviation": round(deviation, 2),
            })

    # A few corrupted timestamps to exercise the drop-and-continue path
    for row in random.sample(data, 5):
        row["vehicle_position_date_time"] = "not a timestamp"

    df = pd.DataFrame(data)
    print(df.head())

    os.makedirs(os.path.dirname(output_file), exist_ok=True)
    df.to_csv(output_file, index=False)
    print(f"Dataset saved to {output_file}")

    os.makedirs(os.path.dirname(regions_file), exist_ok=True)
    with open(regions_file, "w", encoding="utf-8") as f:
        json.dump(region_features(), f, indent=2)
    print(f"Regions saved to {regions_file}")

if __name__ == "__main__":
    generate_data()
