"""Image collector - pull images out of PDF/DOCX files and store them.

Images are extracted independently of the analysis figures and ordered by
(page_number, index_in_page); that order is what pairs them with figure
placeholders later.
"""

import io
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import fitz  # pymupdf
from docx import Document
from docx.oxml.ns import qn
from PIL import Image, UnidentifiedImageError

from ..core.cancellation import CancellationToken, OperationCancelled, check_cancelled
from ..core.observer import PipelineObserver
from ..core.storage import ArtifactStore
from ..schemas.document import AnalyzedFigure, ExtractedImage

logger = logging.getLogger(__name__)

_VML_IMAGEDATA = "{urn:schemas-microsoft-com:vml}imagedata"


@dataclass
class RawImage:
    """Image bytes as found in the source file."""

    page_number: int
    index_in_page: int
    data: bytes
    extension: str = "png"
    description: str = ""


def to_png(data: bytes) -> Optional[bytes]:
    """Re-encode image bytes as PNG.

    Returns:
        PNG bytes, or None if Pillow cannot read the format (EMF, WMF, ...)
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                img = img.convert("RGB")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
            return buf.getvalue()
    except (UnidentifiedImageError, OSError) as exc:
        logger.debug(f"Pillow cannot convert image: {exc}")
        return None


def extract_pdf_images(data: bytes) -> List[RawImage]:
    """Extract embedded images from a PDF, page by page in drawing order."""
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        images: List[RawImage] = []
        for page_index in range(len(doc)):
            page = doc.load_page(page_index)
            for index_in_page, info in enumerate(page.get_images(full=True)):
                xref = info[0]
                extracted = doc.extract_image(xref)
                if not extracted or not extracted.get("image"):
                    logger.warning(f"Page {page_index + 1}: image xref={xref} could not be extracted")
                    continue
                images.append(RawImage(
                    page_number=page_index + 1,
                    index_in_page=index_in_page,
                    data=extracted["image"],
                    extension=extracted.get("ext", "png"),
                ))

        logger.info(f"Extracted {len(images)} images from {len(doc)} PDF pages")
        return images

    finally:
        doc.close()


def extract_docx_images(data: bytes) -> List[RawImage]:
    """Extract images from a DOCX body in document order.

    Word has no fixed pages; page numbers are derived from the page breaks
    Word recorded at last render (w:lastRenderedPageBreak) or, when the file
    has none, from explicit page breaks (w:br w:type="page"). This is
    best-effort: a document never rendered by Word reports only explicit
    breaks.
    """
    document = Document(io.BytesIO(data))
    body = document.element.body
    part = document.part

    rendered_break = qn("w:lastRenderedPageBreak")
    explicit_break = qn("w:br")
    use_rendered = any(True for _ in body.iter(rendered_break))

    images: List[RawImage] = []
    page_number = 1
    index_in_page = 0

    for element in body.iter():
        tag = element.tag

        if use_rendered and tag == rendered_break:
            page_number += 1
            index_in_page = 0
            continue

        if not use_rendered and tag == explicit_break and element.get(qn("w:type")) == "page":
            page_number += 1
            index_in_page = 0
            continue

        if tag == qn("a:blip"):
            rel_id = element.get(qn("r:embed"))
        elif tag == _VML_IMAGEDATA:
            rel_id = element.get(qn("r:id"))
        else:
            continue

        rel = part.rels.get(rel_id) if rel_id else None
        if rel is None or rel.is_external:
            logger.debug(f"Skipping image reference {rel_id} (missing or external)")
            continue

        target = rel.target_part
        images.append(RawImage(
            page_number=page_number,
            index_in_page=index_in_page,
            data=target.blob,
            extension=target.partname.ext,
        ))
        index_in_page += 1

    logger.info(f"Extracted {len(images)} images from DOCX ({page_number} page(s) detected)")
    return images


class ImageCollector:
    """Extracts images from a source document and persists them."""

    def __init__(
        self,
        store: ArtifactStore,
        observer: Optional[PipelineObserver] = None,
    ) -> None:
        """Initialize image collector.

        Args:
            store: Artifact store for image uploads
            observer: Optional tracing hook
        """
        self.store = store
        self.observer = observer or PipelineObserver()

    def collect(
        self,
        data: bytes,
        extension: str,
        document_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ExtractedImage]:
        """Extract and store every image of a PDF or DOCX document.

        Args:
            data: Document bytes
            extension: ".pdf" or ".docx"
            document_id: Folder name for this document's images
            cancel_token: Optional cancellation token

        Returns:
            Stored images ordered by (page_number, index_in_page)
        """
        check_cancelled(cancel_token, "image extraction")

        if extension == ".pdf":
            raw = extract_pdf_images(data)
        elif extension == ".docx":
            raw = extract_docx_images(data)
        else:
            raise ValueError(f"Cannot extract images from '{extension}' files")

        return self._store_images(raw, document_id, cancel_token)

    def collect_from_figures(
        self,
        figures: Sequence[AnalyzedFigure],
        fetch_image: Callable[[str], bytes],
        document_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ExtractedImage]:
        """Fetch and store the cropped image of every analysed figure.

        A figure whose image cannot be fetched still gets an entry (with an
        empty URL) so positional pairing with spans is preserved.

        Args:
            figures: Figures from the analysis result
            fetch_image: Callable returning image bytes for a figure id
            document_id: Folder name for this document's images
            cancel_token: Optional cancellation token
        """
        raw: List[RawImage] = []
        failed: List[ExtractedImage] = []
        per_page: Dict[int, int] = {}

        for figure in figures:
            check_cancelled(cancel_token, "figure download")
            page = figure.bounding_regions[0].page_number if figure.bounding_regions else 1
            index_in_page = per_page.get(page, 0)
            per_page[page] = index_in_page + 1

            try:
                data = fetch_image(figure.figure_id)
            except OperationCancelled:
                raise
            except Exception as exc:
                self.observer.on_warning(
                    "images",
                    f"Could not fetch figure {figure.figure_id}: {exc}",
                    page=page,
                )
                failed.append(ExtractedImage(page, index_in_page, url="", description=figure.caption))
                continue

            raw.append(RawImage(page, index_in_page, data, "png", figure.caption))

        stored = self._store_images(raw, document_id, cancel_token)
        return sorted(stored + failed, key=lambda i: (i.page_number, i.index_in_page))

    def _store_images(
        self,
        raw: Sequence[RawImage],
        document_id: str,
        cancel_token: Optional[CancellationToken],
    ) -> List[ExtractedImage]:
        images: List[ExtractedImage] = []

        for item in sorted(raw, key=lambda r: (r.page_number, r.index_in_page)):
            check_cancelled(cancel_token, "image upload")

            png = to_png(item.data)
            if png is not None:
                data, extension = png, "png"
            else:
                data, extension = item.data, item.extension or "bin"

            name = f"p{item.page_number:03d}_{item.index_in_page:03d}.{extension}"
            try:
                url = self.store.save_image(document_id, name, data)
            except OperationCancelled:
                raise
            except Exception as exc:
                self.observer.on_warning(
                    "images",
                    f"Could not store image {name}: {exc}",
                    page=item.page_number,
                )
                url = ""

            images.append(ExtractedImage(
                page_number=item.page_number,
                index_in_page=item.index_in_page,
                url=url,
                description=item.description,
            ))

        self.observer.on_stage(
            "images",
            extracted=len(raw),
            stored=sum(1 for i in images if i.url),
        )
        return images
