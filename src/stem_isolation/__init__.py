"""stem_isolation package

Split a music recording into drums, bass, other and vocals with a pretrained
hybrid time/frequency network. The transform engine lives in `dsp`, the
network's spectrogram conventions in `spectrogram` and the chunked inference
loop in `apply`.

This __init__ is intentionally lightweight to avoid importing heavy
dependencies (torch, onnxruntime) at package import time. Import submodules
explicitly when needed, e.g. `from stem_isolation.apply import separate_tracks`.
"""

__all__ = [
	"apply",
	"audio",
	"config",
	"dsp",
	"errors",
	"infer",
	"models",
	"spectrogram",
	"tensor",
]
