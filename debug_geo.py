import asyncio
import sys
import os
import httpx

# Add the current directory to sys.path
sys.path.append(os.getcwd())

from app.services.area_bucketer import AreaBucketer
from app.core.config import settings

# Usage: python debug_geo.py https://your-deployment.example
DEFAULT_BASE_URL = "http://127.0.0.1:8000"

async def inspect_deployment(base_url: str):
    async with httpx.AsyncClient(base_url=base_url, timeout=10) as client:
        print(f"--- Edge Geo Headers ({base_url}) ---")
        try:
            resp = await client.get("/api/debug-geo")
            resp.raise_for_status()
            headers = resp.json()
            for name, value in headers.items():
                print(f"{name:<28} {value}")

            lat = headers.get(settings.GEO_LATITUDE_HEADER)
            lon = headers.get(settings.GEO_LONGITUDE_HEADER)
            if lat and lon:
                try:
                    cell = AreaBucketer.get_cell(float(lat), float(lon), settings.CELL_SIZE_DEG)
                    print(f"Would resolve to cell:       {cell}")
                except (ValueError, OverflowError):
                    print("Coordinate headers are not numeric.")
            else:
                print("No coordinate headers; centroid tables would be used.")
        except httpx.HTTPError as e:
            print(f"Error querying debug-geo: {e}")

        print(f"\n--- Cell Snapshot ---")
        try:
            resp = await client.get("/api/ether", headers={"Cache-Control": "no-cache"})
            resp.raise_for_status()
            data = resp.json().get("data", [])
            for entry in sorted(data, key=lambda e: e["count"], reverse=True)[:20]:
                coords = AreaBucketer.parse_cell(entry["cell"])
                where = f"lat {coords[0]:>6.1f} lon {coords[1]:>6.1f}" if coords else "(not a grid cell)"
                print(f"{entry['cell']:<14} {entry['count']:>6}  {where}")
            print(f"{len(data)} distinct cells on the instance that answered.")
        except httpx.HTTPError as e:
            print(f"Error querying snapshot: {e}")

if __name__ == "__main__":
    asyncio.run(inspect_deployment(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL))
