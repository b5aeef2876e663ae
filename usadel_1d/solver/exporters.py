"""Export functions for stack results.

This module writes the numeric outputs of a solved stack:
- Density of states tables (position, energy, DOS) for plotting tools
- CSV files with the integrated observables per position
- Compressed npz or json archives of the whole result
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Union

import numpy as np

from usadel_1d.core.propagator import OBSERVABLES
from usadel_1d.materials.material import Material
from usadel_1d.solver.stack import StackResult


def write_dos(material: Material, path: Union[str, Path], a: float = 0.0, b: float = 1.0) -> Path:
    """Write the density of states of a material as whitespace separated columns.

    Each line holds the position a + (b - a) z, the energy and the DOS; the
    positions are separated by blank lines. When only non-negative energies
    were computed, the negative half is mirrored from the positive one.

    Args:
        material: Solved material
        path: Output file
        a, b: Left and right end points of the material

    Returns:
        Path to output file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    energy = material.energy
    dos = material.state.propagators().dos()
    if np.min(energy) < 0:
        energies, rows = energy, np.arange(len(energy))
    else:
        energies = np.concatenate([-energy[::-1], energy])
        rows = np.concatenate([np.arange(len(energy))[::-1], np.arange(len(energy))])

    with open(path, "w") as f:
        for m, z in enumerate(material.location):
            x = a + (b - a) * z
            for e, n in zip(energies, rows):
                f.write(f"{x:.12e} {e:.12e} {dos[n, m]:.12e}\n")
            f.write("\n")
    return path


def export_observables_csv(material: Material, path: Union[str, Path]) -> Path:
    """Export the integrated observables of a material, one row per position.

    Args:
        material: Material after update_posthook()
        path: Output CSV filename

    Returns:
        Path to output file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    header = ["location", "correlation_re", "correlation_im"]
    for prefix in ("accumulation", "supercurrent", "lossycurrent"):
        header += [f"{prefix}_{name}" for name in OBSERVABLES]
    if material.gap is not None:
        header += ["gap_re", "gap_im"]

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for m, z in enumerate(material.location):
            row = [f"{z:.8e}"]
            row += [f"{material.correlation[m].real:.8e}", f"{material.correlation[m].imag:.8e}"]
            for values in (material.accumulation, material.supercurrent, material.lossycurrent):
                row += [f"{v:.8e}" for v in values[m]]
            if material.gap is not None:
                row += [f"{material.gap[m].real:.8e}", f"{material.gap[m].imag:.8e}"]
            writer.writerow(row)
    return path


def save_result(
    result: StackResult,
    output_path: Union[str, Path],
    format: str = "npz",
) -> None:
    """Save a stack result to file.

    Args:
        result: StackResult to save
        output_path: Output file path
        format: Output format ("npz", "json")

    Example:
        >>> result = run_stack(config)
        >>> save_result(result, "output/bilayer.npz")
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    materials = result.stack.materials

    if format == "npz":
        arrays = {
            "energy": materials[0].energy,
            "location": materials[0].location,
            "deltas": np.asarray(result.deltas),
            "converged": result.converged,
            "runtime_seconds": result.runtime_seconds,
        }
        if result.critical_temperature is not None:
            arrays["critical_temperature"] = result.critical_temperature
        for i, material in enumerate(materials):
            arrays[f"layer{i}_riccati"] = material.state.riccati
            arrays[f"layer{i}_density"] = material.density
            arrays[f"layer{i}_correlation"] = material.correlation
            arrays[f"layer{i}_accumulation"] = material.accumulation
            arrays[f"layer{i}_supercurrent"] = material.supercurrent
            arrays[f"layer{i}_lossycurrent"] = material.lossycurrent
            if material.gap is not None:
                arrays[f"layer{i}_gap"] = material.gap
        np.savez_compressed(output_path, **arrays)
    elif format == "json":
        result_dict = result.to_dict()
        result_dict["layers"] = [
            {
                "name": material.name,
                "dos": material.density[..., 0].tolist(),
                "accumulation": material.accumulation.tolist(),
                "supercurrent": material.supercurrent.tolist(),
                "lossycurrent": material.lossycurrent.tolist(),
                "gap": None if material.gap is None else np.abs(material.gap).tolist(),
            }
            for material in materials
        ]
        with open(output_path, "w") as f:
            json.dump(result_dict, f, indent=2)
    else:
        raise ValueError(f"Unsupported format: {format}")
