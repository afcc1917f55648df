"""
melstream — real-time speech segmentation over a streaming mel spectrogram
==========================================================================
raw float32 PCM → mel frames → energy VAD → segments → Whisper transcript
"""

__version__ = "0.1.0"
