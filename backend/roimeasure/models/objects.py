"""Objects that carry a ROI — annotations and the image root."""

from __future__ import annotations

from dataclasses import dataclass

from roimeasure.roi.rois import ROI


@dataclass(eq=False)
class PathObject:
    """Annotation wrapper. The root object has no ROI of its own and stands for the whole image."""

    roi: ROI | None = None
    name: str = ""
    is_root: bool = False

    @classmethod
    def root(cls) -> PathObject:
        return cls(name="Image", is_root=True)
