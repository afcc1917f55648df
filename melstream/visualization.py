import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np


def mel_to_8bit(mel):
    """Log-compress a mel power matrix into a uint8 image (80 dB range)."""
    log_spec = np.log10(np.maximum(mel, 1e-10))
    top = log_spec.max() if log_spec.size else 0.0
    log_spec = np.maximum(log_spec, top - 8.0)
    scaled = (log_spec - (top - 8.0)) / 8.0
    return np.round(scaled * 255).astype(np.uint8)


def save_mel_image(mel, path):
    """
    Debug export of one segment's mel matrix as an 8-bit grayscale PNG.
    Best effort: any failure is ignored and reported as False.
    """
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        plt.imsave(path, mel_to_8bit(mel), cmap='gray', vmin=0, vmax=255, origin='lower')
    except Exception:
        return False
    return True


class Visualization:
    def __init__(self, records, total_duration, output_dir="mel_out"):
        self.records = records
        self.total_duration = max(1.0, total_duration)
        self.output_dir = output_dir
        os.makedirs(self.output_dir, exist_ok=True)

    def generate_timeline(self):
        plt.figure(figsize=(10, 3))
        for r in self.records:
            color = '#4c72b0' if r.text else '#c44e52'
            plt.axvspan(r.start_time, r.end_time, color=color, alpha=0.7)

        plt.xlim(0, self.total_duration)
        plt.ylim(0, 1)
        plt.yticks([])
        plt.xlabel('Time (seconds)')
        plt.title('Speech Segments')
        plt.grid(axis='x', linestyle='--', alpha=0.7)
        plt.tight_layout()
        path = os.path.join(self.output_dir, "timeline.png")
        plt.savefig(path)
        plt.close()
        return path
