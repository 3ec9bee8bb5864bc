"""Unit tests and toy example for the streaming feature pipeline."""

from __future__ import annotations

import unittest
from typing import List

import numpy as np

from vroom_features.audio import FeatureConfig
from vroom_features.pipeline import AudioProcessor, StreamingConfig, StreamingFeaturePipeline

TENSOR_BYTES = 241 * 428


def _fake_stereo_stream(
    frames_per_chunk: int,
    num_chunks: int,
    seed: int = 42,
) -> List[np.ndarray]:
    """Interleaved stereo int16 chunks (for testing)."""
    rng = np.random.default_rng(seed)
    return [
        rng.integers(-3000, 3000, size=2 * frames_per_chunk).astype(np.int16)
        for _ in range(num_chunks)
    ]


class TestStreamingFeaturePipeline(unittest.TestCase):
    """Tests for StreamingFeaturePipeline."""

    def setUp(self) -> None:
        self.config = StreamingConfig(window_sec=0.1)  # 1600 samples

    def test_no_tensor_until_window_full(self) -> None:
        pipeline = StreamingFeaturePipeline(config=self.config)
        chunks = _fake_stereo_stream(800, 2)
        self.assertIsNone(pipeline.push(chunks[0]))
        tensor = pipeline.push(chunks[1])
        self.assertIsNotNone(tensor)
        self.assertEqual(len(tensor), TENSOR_BYTES)

    def test_empty_chunk_ignored(self) -> None:
        pipeline = StreamingFeaturePipeline(config=self.config)
        self.assertIsNone(pipeline.push(np.array([], dtype=np.int16)))

    def test_run_for_n_updates(self) -> None:
        """After the first full window, every chunk yields one tensor."""
        collected: List[bytes] = []
        pipeline = StreamingFeaturePipeline(config=self.config, on_tensor=collected.append)
        tensors = pipeline.run_for_n_updates(3, iter(_fake_stereo_stream(800, 10)))
        self.assertEqual(len(tensors), 3)
        self.assertEqual(collected, tensors)
        self.assertTrue(all(len(t) == TENSOR_BYTES for t in tensors))

    def test_window_matches_processor(self) -> None:
        """The emitted tensor equals processing the last window directly."""
        chunks = _fake_stereo_stream(1000, 2)
        pipeline = StreamingFeaturePipeline(config=self.config)
        pipeline.push(chunks[0])
        tensor = pipeline.push(chunks[1])
        stereo = np.concatenate(chunks)[-2 * 1600 :]
        expected = AudioProcessor().process_audio_channels(stereo[0::2], stereo[1::2])
        self.assertEqual(tensor, expected)

    def test_run_and_reset(self) -> None:
        collected: List[bytes] = []
        pipeline = StreamingFeaturePipeline(config=self.config, on_tensor=collected.append)
        pipeline.run(iter(_fake_stereo_stream(800, 4)))
        self.assertEqual(len(collected), 3)
        pipeline.reset()
        self.assertIsNone(pipeline.push(_fake_stereo_stream(800, 1)[0]))

    def test_stop(self) -> None:
        collected: List[bytes] = []
        pipeline = StreamingFeaturePipeline(config=self.config)

        def on_tensor(tensor: bytes) -> None:
            collected.append(tensor)
            pipeline.stop()

        pipeline.on_tensor = on_tensor
        pipeline.run(iter(_fake_stereo_stream(800, 10)))
        self.assertEqual(len(collected), 1)

    def test_default_window_from_feature_config(self) -> None:
        pipeline = StreamingFeaturePipeline(feature_config=FeatureConfig(window_sec=0.5))
        self.assertEqual(pipeline.window_samples, 8000)

    def test_window_override_uses_feature_sample_rate(self) -> None:
        pipeline = StreamingFeaturePipeline(config=StreamingConfig(window_sec=0.25))
        self.assertEqual(pipeline.window_samples, 4000)
        self.assertEqual(StreamingFeaturePipeline().window_samples, 48_000)

    def test_invalid_window(self) -> None:
        with self.assertRaises(ValueError):
            StreamingConfig(window_sec=0.0)

    def test_processor_config_mismatch(self) -> None:
        with self.assertRaises(ValueError):
            StreamingFeaturePipeline(
                feature_config=FeatureConfig(degenerate_fill=1.0),
                processor=AudioProcessor(FeatureConfig()),
            )

    def test_odd_chunks_keep_channels_aligned(self) -> None:
        """A chunk ending mid-frame does not shift later samples across channels."""
        rng = np.random.default_rng(7)
        left = rng.integers(1, 3000, size=1600).astype(np.int16)
        right = -rng.integers(1, 3000, size=1600).astype(np.int16)
        stereo = np.stack([left, right], axis=1).reshape(-1)
        pipeline = StreamingFeaturePipeline(config=self.config)
        self.assertIsNone(pipeline.push(stereo[:1601]))
        tensor = pipeline.push(stereo[1601:])
        self.assertEqual(tensor, AudioProcessor().process_audio_channels(left, right))

    def test_reset_drops_half_frame(self) -> None:
        pipeline = StreamingFeaturePipeline(config=self.config)
        pipeline.push(np.array([5, -5, 6], dtype=np.int16))
        pipeline.reset()
        chunk = np.tile(np.array([1, -1], dtype=np.int16), 1600)
        tensor = pipeline.push(chunk)
        expected = AudioProcessor().process_audio_channels(chunk[0::2], chunk[1::2])
        self.assertEqual(tensor, expected)


def run_toy_example() -> None:
    """Toy: stream 0.5 s windows of noise and print tensor sizes."""
    print("=== Toy example: streaming feature pipeline ===\n")
    config = StreamingConfig(window_sec=0.5)
    pipeline = StreamingFeaturePipeline(
        config=config,
        on_tensor=lambda t: print(f"  tensor: {len(t)} bytes, mean={np.frombuffer(t, np.uint8).mean():.1f}"),
    )
    pipeline.run(iter(_fake_stereo_stream(2000, 8)))
    print("Done.")


if __name__ == "__main__":
    run_toy_example()
    print("\n--- Running unit tests ---")
    unittest.main(argv=[""], exit=False, verbosity=2)
