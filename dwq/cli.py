"""
DWQ converter
Converts Black Cyc DWQ images to PNG.

Supported pack types:
- ✓ Type 0: embedded BMP (stored upside down)
- ✓ Type 3: packed RLE+XOR bitmap, optional mask ("PACKTYPE=3A")
- ✓ Type 5: embedded JPEG
- ✓ Type 7: embedded JPEG, optional mask ("PACKTYPE=7A")
- ✓ Type 8: embedded PNG
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from .config import Config
from .decoder import DwqDecoder


# ============================================================================
# DECODING
# ============================================================================

def decode_dwq_file(
    dwq_path: str,
    output_dir: str = None,
    output_filename: str = None,
    decoder: DwqDecoder = None,
) -> str:
    """
    Decode a single DWQ image into a PNG file.

    Args:
        dwq_path: Path to the .dwq file
        output_dir: Directory to place the .png (default: Config.OUTPUT_DIR)
        output_filename: Optional custom output filename (without extension)
        decoder: Decoder to use (default: DwqDecoder with Pillow codecs)

    Returns:
        Path to the generated .png file, or empty string on failure
    """
    if output_dir is None:
        output_dir = Config.OUTPUT_DIR
    if decoder is None:
        decoder = DwqDecoder()

    name = os.path.basename(dwq_path)
    try:
        with open(dwq_path, 'rb') as fp:
            result = decoder.probe(fp)
            if not result.ok:
                tqdm.write(f"  [SKIP] Not a DWQ image: {name}")
                return ""
            image = decoder.read(fp, result.metadata)

        os.makedirs(output_dir, exist_ok=True)
        base_name = output_filename or os.path.splitext(name)[0]
        out_path = os.path.join(output_dir, f"{base_name}.png")
        image.save_to_png(out_path)
        tqdm.write(f"  [OK] Decoded {name} -> {os.path.basename(out_path)}")
        return out_path
    except Exception as e:
        tqdm.write(f"  [ERROR] Decode failed ({name}): {e}")
        return ""


def decode_dwq_files(file_paths: List[str], output_dir: str = None) -> List[str]:
    """
    Decode multiple DWQ files to PNG.

    Args:
        file_paths: List of .dwq file paths
        output_dir: Output directory for .png files (default: Config.OUTPUT_DIR)

    Returns:
        List of generated .png file paths
    """
    if not file_paths:
        print("No DWQ files to decode.")
        return []

    decoder = DwqDecoder()
    outputs: List[str] = []
    for path in tqdm(file_paths, desc="Decoding DWQ", unit="file"):
        out = decode_dwq_file(path, output_dir=output_dir, decoder=decoder)
        if out:
            outputs.append(out)

    print(f"\n[OK] Decoded {len(outputs)}/{len(file_paths)} files")
    return outputs


def collect_dwq_files(paths: List[str]) -> List[str]:
    """Expand directories into the .dwq files they contain."""
    files = []
    for path in paths:
        p = Path(path)
        if p.is_dir():
            files.extend(
                str(f) for f in sorted(p.iterdir())
                if f.is_file() and f.suffix.lower() == Config.FILE_EXTENSION
            )
        else:
            files.append(str(p))
    return files


# ============================================================================
# ENTRY POINT
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='dwq-decode',
        description=f"Convert {Config.FORMAT_DESCRIPTION} files to PNG.",
    )
    parser.add_argument('inputs', nargs='+', help="DWQ files or directories containing them")
    parser.add_argument('-o', '--output-dir', default=Config.OUTPUT_DIR,
                        help=f"Output directory (default: {Config.OUTPUT_DIR})")
    parser.add_argument('--debug', action='store_true', help="Print decoding details")
    args = parser.parse_args(argv)

    if args.debug:
        Config.DEBUG_MODE = True

    file_paths = collect_dwq_files(args.inputs)
    outputs = decode_dwq_files(file_paths, output_dir=args.output_dir)
    return 0 if len(outputs) == len(file_paths) else 1


if __name__ == '__main__':
    sys.exit(main())
