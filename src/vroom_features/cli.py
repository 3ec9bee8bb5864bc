"""CLI for extracting the combined feature tensor from a stereo recording."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Tuple

import numpy as np

from vroom_features.audio.buffer import bytes_to_pcm16
from vroom_features.audio.config import FeatureConfig
from vroom_features.pipeline import AudioProcessor
from vroom_features.tensor import tensor_to_image

logger = logging.getLogger(__name__)


def load_wav_channels(path: Path, config: FeatureConfig) -> Tuple[np.ndarray, np.ndarray]:
    """Read a stereo 16-bit WAV at config.sample_rate into (left, right)."""
    import scipy.io.wavfile as wavfile

    sr, audio = wavfile.read(str(path))
    if sr != config.sample_rate:
        raise ValueError(f"Expected {config.sample_rate} Hz, got {sr} Hz. Resample the file.")
    if audio.dtype != np.int16:
        raise ValueError(f"Expected 16-bit PCM, got {audio.dtype}")
    if audio.ndim != 2 or audio.shape[1] != 2:
        raise ValueError(f"Expected a stereo recording, got shape {audio.shape}")
    return audio[:, 0].copy(), audio[:, 1].copy()


def load_raw_channels(left: Path, right: Path) -> Tuple[np.ndarray, np.ndarray]:
    """Read left.raw / right.raw little-endian 16-bit PCM payloads."""
    return bytes_to_pcm16(left.read_bytes()), bytes_to_pcm16(right.read_bytes())


def write_tensor(path: Path, tensor: bytes, config: FeatureConfig) -> None:
    """Write raw bytes, or a (final_height, spec_width) uint8 array for .npy paths."""
    if path.suffix == ".npy":
        np.save(path, tensor_to_image(tensor, config))
    else:
        path.write_bytes(tensor)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract the stacked MFCC/spectrogram tensor from stereo 16 kHz audio"
    )
    parser.add_argument(
        "wav",
        type=Path,
        nargs="?",
        default=None,
        help="Stereo 16-bit WAV file (16 kHz)",
    )
    parser.add_argument("--left", type=Path, default=None, help="Raw little-endian PCM for the left channel")
    parser.add_argument("--right", type=Path, default=None, help="Raw little-endian PCM for the right channel")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("features.raw"),
        help="Output path; .npy writes a 428x241 uint8 array, anything else raw bytes",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on non-finite feature values instead of clamping them",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    has_raw = args.left is not None or args.right is not None
    if has_raw and (args.left is None or args.right is None):
        parser.error("--left and --right must be given together")
    if has_raw == (args.wav is not None):
        parser.error("give either a WAV file or --left/--right")

    config = FeatureConfig(strict=args.strict)
    try:
        if args.wav is not None:
            left, right = load_wav_channels(args.wav, config)
        else:
            left, right = load_raw_channels(args.left, args.right)
        tensor = AudioProcessor(config).process_audio_channels(left, right)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    write_tensor(args.output, tensor, config)
    logger.info(
        "%d samples/channel (%.2fs) -> %d bytes saved to %s",
        len(left),
        len(left) / config.sample_rate,
        len(tensor),
        args.output,
    )


if __name__ == "__main__":
    main()
