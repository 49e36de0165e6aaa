from copy import deepcopy

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.dml import MSO_COLOR_TYPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.opc.constants import RELATIONSHIP_TYPE as RT
from pptx.util import Inches, Pt

TOKEN_TITLE = "{{TITLE}}"
TOKEN_SUBTITLE = "{{SUBTITLE}}"
TOKEN_SLIDE_TITLE = "{{SLIDE TITLE}}"
TOKEN_CONTENT = "{{CONTENT}}"

# Name given to every content text box so QA can find it again.
CONTENT_SHAPE_NAME = "CONTENT"

SLIDE_WIDTH_IN = 10
SLIDE_HEIGHT_IN = 7.5
BLANK_LAYOUT_INDEX = 6
FONT_FACE = "Arial"

_ALIGN = {
    "left": PP_ALIGN.LEFT,
    "center": PP_ALIGN.CENTER,
    "right": PP_ALIGN.RIGHT,
}


class TemplateError(Exception):
    """The .pptx template lacks a slide or token the builder needs."""


def load_template(path):
    return Presentation(str(path))


def new_presentation():
    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)
    return prs


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color.lstrip("#").upper())


# -------------------------
# Default layout (no template)
# -------------------------

def add_blank_slide(prs, background: str):
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT_INDEX])
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = _rgb(background)
    return slide


def add_text_box(
    slide,
    text: str,
    x: float,
    y: float,
    w: float,
    h: float,
    *,
    size: int,
    color: str,
    bold: bool = False,
    align: str = "center",
    top_anchor: bool = False,
    line_spacing: float = None,
    name: str = None,
):
    """Add a text box positioned in inches; one paragraph per line of ``text``."""
    box = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h))
    if name:
        box.name = name

    tf = box.text_frame
    tf.word_wrap = True
    if top_anchor:
        tf.vertical_anchor = MSO_ANCHOR.TOP

    for i, line in enumerate(text.split("\n")):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        p.alignment = _ALIGN[align]
        if line_spacing is not None:
            p.line_spacing = Pt(line_spacing)
        run = p.add_run()
        run.text = line
        run.font.name = FONT_FACE
        run.font.size = Pt(size)
        run.font.bold = bold
        run.font.color.rgb = _rgb(color)
    return box


# -------------------------
# Token-based approach (user-authored templates)
# Uses slides that literally contain {{TITLE}} / {{CONTENT}} text boxes
# -------------------------

def _copy_relationships(src_slide, dst_slide):
    """Link dst_slide to the images/media that src_slide's shapes point at."""
    # the new slide already has its layout relationship
    wanted = [
        rel for rel in src_slide.part.rels.values()
        if not rel.is_external and rel.reltype != RT.SLIDE_LAYOUT
    ]
    for rel in wanted:
        dst_slide.part.rels._add_relationship(rel.reltype, rel.target_part)


def duplicate_slide(prs, slide_index: int):
    """Append a copy of slide slide_index (background and shapes) to the deck."""
    src = prs.slides[slide_index]
    dst = prs.slides.add_slide(src.slide_layout)

    # the layout's placeholders would sit under the copied shapes
    for placeholder in list(dst.shapes):
        placeholder._element.getparent().remove(placeholder._element)

    src_bg = src._element.bg
    if src_bg is not None and len(src_bg):
        dst_bg = dst._element.cSld.get_or_add_bg()
        dst_bg.clear()
        dst_bg.append(deepcopy(src_bg[0]))

    tree = dst.shapes._spTree
    for shape in src.shapes:
        tree.insert_element_before(deepcopy(shape._element), "p:extLst")

    _copy_relationships(src, dst)
    return dst


def delete_slide(prs, slide_index: int) -> None:
    """
    Delete slide at slide_index, dropping its relationship from the deck.
    """
    slide_id_list = prs.slides._sldIdLst  # pylint: disable=protected-access
    sld_id = list(slide_id_list)[slide_index]
    r_id = sld_id.rId

    slide_id_list.remove(sld_id)
    if r_id in prs.part.rels:
        prs.part.drop_rel(r_id)


_PARAGRAPH_ATTRS = ("alignment", "level", "space_before", "space_after", "line_spacing")
_FONT_ATTRS = ("name", "size", "bold", "italic")


def _text_shapes(slide):
    return [shape for shape in slide.shapes if shape.has_text_frame]


def _capture_style(paragraph):
    para = {attr: getattr(paragraph, attr) for attr in _PARAGRAPH_ATTRS}
    # Formatting often lives on the first run rather than the paragraph
    font = paragraph.runs[0].font if paragraph.runs else paragraph.font
    run = {attr: getattr(font, attr) for attr in _FONT_ATTRS}
    # theme colours cannot be copied by value
    run["rgb"] = font.color.rgb if font.color is not None and font.color.type == MSO_COLOR_TYPE.RGB else None
    return para, run


def find_token_shape(slide, token: str):
    return next((s for s in _text_shapes(slide) if token in s.text_frame.text), None)


def replace_token_text(slide, token: str, new_text: str):
    """
    Put new_text (one paragraph per line) in the first text frame holding token,
    styled like that frame's first paragraph. Returns the shape, or None.
    """
    shape = find_token_shape(slide, token)
    if shape is None:
        return None

    tf = shape.text_frame
    para_style, run_style = _capture_style(tf.paragraphs[0])
    rgb = run_style.pop("rgb")

    tf.clear()
    for i, line in enumerate(new_text.split("\n")):
        paragraph = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        for attr, value in para_style.items():
            setattr(paragraph, attr, value)
        run = paragraph.add_run()
        run.text = line
        for attr, value in run_style.items():
            setattr(run.font, attr, value)
        if rgb is not None:
            run.font.color.rgb = rgb

    return shape


def slide_contains_token(slide, token: str) -> bool:
    return any(token in shape.text_frame.text for shape in _text_shapes(slide))


def find_template_slide_index(prs, required_tokens) -> int:
    """Index of the first slide carrying every token in required_tokens."""
    for index, slide in enumerate(prs.slides):
        if all(slide_contains_token(slide, tok) for tok in required_tokens):
            return index
    raise TemplateError(f"Template slide not found containing tokens: {list(required_tokens)}")


def remove_token_slides(prs) -> int:
    """Drop every slide still showing a {{...}} token; returns how many went."""
    leftovers = [index for index, s in enumerate(prs.slides) if slide_contains_token(s, "{{")]
    for index in reversed(leftovers):
        delete_slide(prs, index)
    return len(leftovers)
