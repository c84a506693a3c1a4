# 文件: pytriax/main.py
"""
命令行入口 (无界面运行)

    python -m pytriax.main --cube 12 --final 60 --brittle --tensile 2.0
    python -m pytriax.main --config run.json --labels sample.npy --material 3
"""

import argparse
import json
import os
import sys
import threading

import numpy as np

from .core import SimulationFactory, SolverConstants, VoxelVolume, uniform_cube
from .solver import TriaxialSimulator
from .utils import calibrate


def print_args_in_order(args, parser):
    print("\n===== Loaded Simulation Parameters =====")
    for action in parser._actions:
        if action.dest in vars(args) and action.dest != 'help':
            print(f"{action.dest}: {getattr(args, action.dest)}")
    print("=======================================\n")


def build_parser(parents=()):
    parser = argparse.ArgumentParser(description="Triaxial compression simulation", parents=list(parents))

    # Volume
    parser.add_argument("--labels", type=str, default=None, help="Label volume (.npy, shape nx x ny x nz)")
    parser.add_argument("--densities", type=str, default=None, help="Density volume (.npy), same shape as labels")
    parser.add_argument("--density", type=float, default=2600.0, help="Uniform density (kg/m3) when no density volume is given")
    parser.add_argument("--cube", type=int, default=10, help="Edge length (voxels) of the synthetic cube used when --labels is absent")
    parser.add_argument("--material", type=int, default=1, help="Material label to load")
    parser.add_argument("--voxel_size", type=float, default=1e-3, help="Voxel edge length (m)")

    # Loading
    parser.add_argument("--axis", type=str, default="z", choices=["x", "y", "z"], help="Loading axis")
    parser.add_argument("--confining", type=float, default=0.0, help="Confining pressure (MPa)")
    parser.add_argument("--initial", type=float, default=None, help="Initial axial pressure (MPa), defaults to confining")
    parser.add_argument("--final", type=float, default=10.0, help="Final axial pressure (MPa)")
    parser.add_argument("--increments", type=int, default=5, help="Number of pressure increments")
    parser.add_argument("--steps", type=int, default=200, help="Time steps per increment")

    # Material
    parser.add_argument("--E", type=float, default=20000.0, help="Young's modulus (MPa)")
    parser.add_argument("--nu", type=float, default=0.25, help="Poisson's ratio")
    parser.add_argument("--plastic", action="store_true", help="Enable the Mohr-Coulomb plastic corrector")
    parser.add_argument("--cohesion", type=float, default=10.0, help="Cohesion (MPa)")
    parser.add_argument("--friction_angle", type=float, default=30.0, help="Friction angle (deg)")
    parser.add_argument("--brittle", action="store_true", help="Enable brittle tensile damage")
    parser.add_argument("--tensile", type=float, default=5.0, help="Tensile strength (MPa)")

    # Solver
    parser.add_argument("--stencil", type=str, default="staggered", choices=["staggered", "central"], help="Finite-difference scheme")
    parser.add_argument("--damping", type=float, default=0.05, help="Fractional velocity damping per step")
    parser.add_argument("--pause_on_failure", action="store_true",
                        help="Ask on stdin whether to continue after failure detection (default: continue automatically)")
    return parser


def get_args(argv=None):
    # First pass: only parse --config so we can load it before other args
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", type=str, help="Path to JSON config file")
    pre_args, _ = pre_parser.parse_known_args(argv)

    parser = build_parser(parents=[pre_parser])

    # Config values become defaults, explicit CLI flags still win
    if pre_args.config:
        if not os.path.exists(pre_args.config):
            parser.error(f"config file not found: {pre_args.config}")
        with open(pre_args.config, "r") as f:
            config_data = json.load(f)
        known = {a.dest for a in parser._actions}
        unknown = sorted(k for k in config_data if k not in known)
        if unknown:
            parser.error(f"unknown config keys: {', '.join(unknown)}")
        parser.set_defaults(**config_data)

    args = parser.parse_args(argv)
    print_args_in_order(args, parser)
    return args


def load_volume(args):
    if args.labels is None:
        return uniform_cube(args.cube, material_id=args.material, density=args.density)

    labels = np.load(args.labels)
    densities = np.load(args.densities) if args.densities else None
    return VoxelVolume(labels, densities, default_density=args.density)


def build_props(args) -> dict:
    props = {
        'E': args.E,
        'nu': args.nu,
        'voxel_size': args.voxel_size,
        'material_id': args.material,
        'confining_pressure': args.confining,
        'final_axial_pressure': args.final,
        'increments': args.increments,
        'steps_per_increment': args.steps,
        'axis': args.axis,
    }
    if args.initial is not None:
        props['initial_axial_pressure'] = args.initial
    if args.plastic:
        props['plastic'] = {'cohesion': args.cohesion, 'friction_angle': args.friction_angle}
    if args.brittle:
        props['brittle'] = {'tensile_strength': args.tensile}
    return props


def run_with_prompt(simulator, poll_interval=0.1):
    """
    后台运行模拟, 检测到破坏时在主线程询问是否继续

    回答 y / yes 继续加载, 其余回答 (或输入结束) 取消运行。
    """
    failed = threading.Event()
    simulator.add_failure_listener(lambda event: failed.set())
    thread = simulator.start()

    while thread.is_alive():
        if not failed.wait(poll_interval):
            continue
        failed.clear()
        try:
            answer = input("Failure detected. Continue loading? [y/N] ")
        except EOFError:
            answer = ""
        if answer.strip().lower() in ("y", "yes"):
            simulator.continue_after_failure()
        else:
            simulator.cancel()

    thread.join()
    return simulator.result


def main(argv=None):
    args = get_args(argv)

    try:
        volume = load_volume(args)
        params = SimulationFactory.for_volume(volume, build_props(args), name=args.labels or "cube")
        constants = SolverConstants(stencil=args.stencil, velocity_damping=args.damping)
        simulator = TriaxialSimulator(volume, params, constants)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        if args.pause_on_failure:
            result = run_with_prompt(simulator)
        else:
            simulator.add_failure_listener(lambda event: simulator.continue_after_failure())
            result = simulator.run()
    except KeyboardInterrupt:
        simulator.dispose()
        return 130

    if result is None:
        return 1

    calib = calibrate(result.strains, result.stresses, default_modulus=params.youngs_modulus)
    print(f"\n{'STRAIN':<14} | {'STRESS (MPa)':<12}")
    print("-" * 30)
    for strain, stress in zip(result.strains, result.stresses):
        print(f"{strain:<14.6e} | {stress:<12.3f}")
    print(f"\nPeak stress: {result.peak_stress:.3f} MPa at strain {result.strain_at_peak:.6e}")
    print(f"Failure: {'increment ' + str(result.failure_increment) if result.failure_detected else 'none'}")
    print(f"Calibrated E = {calib.youngs_modulus:.1f} MPa, "
          f"yield = {calib.yield_strength:.2f} MPa, brittle = {calib.brittle_strength:.2f} MPa")
    return 0


if __name__ == "__main__":
    sys.exit(main())
