"""Separate an audio file into drums, bass, other and vocals stems.

Writes <out-dir>/<input basename>/<source>.wav. The model is either
"identity" (passthrough, for smoke runs), an exported .onnx network or a
TorchScript file; its metadata comes from the YAML config.
"""
import argparse
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))
from stem_isolation.config import load_config
from stem_isolation.errors import StemIsolationError
from stem_isolation.infer import infer
from stem_isolation.models import load_separator


def progress(step, total):
    print(f"{step}/{total}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Separate a track into stems with a hybrid separation network.")
    parser.add_argument("input", help="Path to the input audio file")
    parser.add_argument("-o", "--out-dir", default=None, help="Output directory (default: output.dir from config)")
    parser.add_argument("--overlap", type=float, default=None, help="Overlap ratio for chunking (default: 0.25)")
    parser.add_argument("--model", default=None, help="identity, a .onnx file or a TorchScript file")
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--float", action="store_true", help="Write 32-bit float WAVs instead of 16-bit PCM")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    inp = Path(args.input)
    if not inp.exists():
        print(f"Error: Input file not found: {inp}", file=sys.stderr)
        return 1

    cfg = load_config(args.config)
    out_dir = args.out_dir or cfg.output.dir
    overlap = cfg.overlap if args.overlap is None else args.overlap
    subtype = "FLOAT" if args.float else cfg.output.subtype

    print("Loading model...")
    try:
        model = load_separator(args.model or cfg.model.path, cfg)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Reading and processing audio...")
    try:
        written = infer(model, inp, out_dir, overlap=overlap, progress=progress, subtype=subtype)
    except StemIsolationError as e:
        print(f"[error] {inp.name}: {e}", file=sys.stderr)
        return 1

    for path in written.values():
        print(f"  Wrote: {path}")
    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
