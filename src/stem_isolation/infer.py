import logging
import os

from .apply import separate_tracks
from .audio import read_audio, write_audio

log = logging.getLogger(__name__)


def infer(model, input_path, out_dir, overlap=0.25, progress=None, subtype='PCM_16', cancel=None):
    """Separate one audio file and write `<out_dir>/<input stem>/<source>.wav`.

    Returns a dict mapping source name to the written path.
    """
    raw = read_audio(input_path)
    log.info("read %s: %d channels, %d samples at %d Hz",
             input_path, raw.channels, raw.samples, raw.sample_rate)
    tracks = separate_tracks(model, raw, progress=progress, overlap=overlap, cancel=cancel)

    base = os.path.splitext(os.path.basename(str(input_path)))[0]
    track_dir = os.path.join(out_dir, base)
    os.makedirs(track_dir, exist_ok=True)
    written = {}
    for name, audio in tracks.items():
        written[name] = write_audio(os.path.join(track_dir, f'{name}.wav'), audio, subtype=subtype)
    return written
