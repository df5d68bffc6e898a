"""onnxruntime backend for an exported hybrid separation network."""
import logging

import numpy as np
import onnxruntime as ort

from .models import BaseSeparator

log = logging.getLogger(__name__)


class OnnxSeparator(BaseSeparator):
    """Feeds the session's first two inputs (mix, magspec) and reads its first two outputs."""

    def __init__(self, model_path, providers=('CPUExecutionProvider',), **kwargs):
        super().__init__(**kwargs)
        self.session = ort.InferenceSession(model_path, providers=list(providers))
        self.input_names = [i.name for i in self.session.get_inputs()]
        self.output_names = [o.name for o in self.session.get_outputs()]
        log.debug("onnx inputs %s outputs %s", self.input_names, self.output_names)

    def forward(self, mix, magspec):
        feeds = {
            self.input_names[0]: np.ascontiguousarray(mix, dtype=np.float32),
            self.input_names[1]: np.ascontiguousarray(magspec, dtype=np.float32),
        }
        out_x, out_xt = self.session.run(self.output_names[:2], feeds)
        return out_x, out_xt
