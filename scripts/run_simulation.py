#!/usr/bin/env python3
"""Helper script to generate a synthetic fleet and reconstruct it locally."""
import argparse
import os
import subprocess

parser = argparse.ArgumentParser()
parser.add_argument("--out", required=True)
parser.add_argument("--scanners", type=int, default=5)
parser.add_argument("--seed", type=int, default=0)
args = parser.parse_args()

fleet_dir = os.path.abspath(args.out)

# generate fleet
subprocess.check_call([
    "python3", "-m", "simulation.generate_synthetic",
    "--out", fleet_dir, "--scanners", str(args.scanners), "--seed", str(args.seed),
])
# run reconstruction
outdir = os.path.join(fleet_dir, "artifacts")
subprocess.check_call([
    "python3", "-m", "reconstruction.pipeline",
    "--reports", os.path.join(fleet_dir, "reports.txt"), "--out", outdir,
])
print("Done. artifacts in:", outdir)
