"""White noise and its boxcar-filtered version, written as WAV files.

Run with:
    dagcompute compute examples/noise_filter.py
"""

from collections.abc import Sequence
from pathlib import Path

import numpy as np
from scipy.io import wavfile

from dagcompute import ComputationGraph

SAMPLE_COUNT = 96000
SAMPLE_RATE = 48000

type Signal = np.ndarray | tuple[Path, ...]


def generate_noise(_: Sequence[Signal], *, seed: int | None = None) -> Signal:
    rng = np.random.default_rng(seed)
    return rng.uniform(-0.25, 0.25, SAMPLE_COUNT).astype(np.float32)


def boxcar_filter(values: Sequence[Signal]) -> Signal:
    (samples,) = values
    if not isinstance(samples, np.ndarray):
        msg = f"Expected samples, got {type(samples).__name__}"
        raise TypeError(msg)
    window_length = SAMPLE_RATE // 500
    padded = np.concatenate([np.zeros(window_length - 1, dtype=np.float32), samples])
    averaged = np.convolve(padded, np.full(window_length, 1.0 / window_length), mode="valid")
    # Scale so the filtered noise keeps a comparable loudness
    return (averaged * np.sqrt(window_length / 2.0)).astype(np.float32)


def write_wav(path: Path, samples: np.ndarray) -> None:
    # 32-bit IEEE float samples, mono
    wavfile.write(path, SAMPLE_RATE, samples.astype(np.float32))


def build_graph(output_dir: Path = Path(), seed: int | None = None) -> ComputationGraph[Signal]:
    graph = ComputationGraph[Signal]()
    noisegen = graph.insert_node("Noise generator", lambda values: generate_noise(values, seed=seed))
    boxcar = graph.insert_node("Boxcar filter", boxcar_filter)
    graph.set_inputs(boxcar, [noisegen])

    def write_output_files(values: Sequence[Signal]) -> Signal:
        raw, filtered = values
        if not isinstance(raw, np.ndarray) or not isinstance(filtered, np.ndarray):
            msg = "Expected raw and filtered samples"
            raise TypeError(msg)
        output_dir.mkdir(parents=True, exist_ok=True)
        raw_path = output_dir / "noise.wav"
        filtered_path = output_dir / "noise_filtered.wav"
        write_wav(raw_path, raw)
        write_wav(filtered_path, filtered)
        return (raw_path, filtered_path)

    output_file = graph.insert_node("Write output file", write_output_files)
    graph.set_inputs(output_file, [noisegen, boxcar])
    graph.designate_output(output_file)
    return graph


if __name__ == "__main__":
    for written in build_graph().compute():  # type: ignore[union-attr]
        print(written)  # noqa: T201
