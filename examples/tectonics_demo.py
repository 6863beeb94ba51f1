#!/usr/bin/env python3
"""
Demonstration of a tectonic generation session.

This script walks through the passes a terrain editor runs:
1. Site graph generation with Lloyd's relaxation
2. Plate partitioning and boundary stress
3. Uplift along plate boundaries
4. Selection outlines and coastlines
5. Interactive site edits
"""

from py_tectonics.config import Settings, configure_logging
from py_tectonics.core import TectonicSession
from py_tectonics.core.boundaries import stress_summary
from py_tectonics.core.region import polygon_area


def main():
    configure_logging("WARNING", "console")
    settings = Settings(map_width=400, map_height=400, section_count=800, plate_count=8)

    print("=== Tectonics Demo ===\n")

    # 1. Sections
    print("1. Generating sections...")
    session = TectonicSession(settings, seed="demo_seed")
    graph = session.generate_sections()
    print(f"   - Generated {len(graph)} sites, {len(graph.edges)} edges")
    print(f"   - Seed: {session.prng.seed}")

    # 2. Plates
    print("\n2. Generating tectonic plates...")
    plates = session.generate_tectonic_plates()
    session.calculate_stress()
    for plate in plates:
        kind = "oceanic" if plate.oceanic else "continental"
        print(f"   - Plate {plate.id}: {len(plate.sites)} sites, {kind}")
    summary = stress_summary(session.boundaries)
    print(f"   - {summary['boundaries']} boundary edges, {summary['divergent']} divergent")

    # 3. Uplift
    print("\n3. Creating uplift...")
    session.reset_elevation()
    visited = session.create_uplift()
    elevations = session.sections.elevation
    land = int((elevations >= settings.sealevel).sum())
    print(f"   - Visited {visited} sites")
    print(f"   - Elevation: min={elevations.min():.3f}, max={elevations.max():.3f}")
    print(f"   - Land sites: {land} of {len(graph)}")

    # 4. Selection and coastline
    print("\n4. Selecting a site and its neighbors...")
    site = len(graph) // 2
    session.selection.toggle(site)
    for neighbor in sorted(graph.neighbors(site)):
        session.selection.toggle(neighbor)
    outline = session.selection_polygon()
    print(f"   - Selected {len(session.selection)} sites")
    print(f"   - Outline: {len(outline)} points, area {polygon_area(outline):.1f}")
    print(f"   - Coastline segments: {len(session.coastline_segments())}")

    # 5. Site edit
    print("\n5. Moving a site...")
    x, y = graph.site_coord(site)
    applied = session.move_site(site, x + 5.0, y + 5.0)
    print(f"   - Site {site} moved to ({applied[0]:.1f}, {applied[1]:.1f})")
    print(f"   - Sections needing update: {len(session.sections_needing_update())}")
    print(f"   - Boundary edges after edit: {len(session.boundaries)}")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
