"""Построение текстовой инструкции для модели генерации."""
from __future__ import annotations

from textwrap import dedent

from fabric_studio.models.settings_model import FabricType, GenerationSettings, PatternScale, TargetArea


def material_instruction(fabric: FabricType) -> str:
    if fabric is FabricType.ORIGINAL:
        return "MATERIAL: Maintain the original fabric weight and texture feel, but apply the new pattern."
    return (
        f"MATERIAL SIMULATION: Simulate the physical properties of {fabric.value}. "
        f"Ensure the light reflection, drape, and texture micro-details match real {fabric.value} fabric."
    )


def scale_instruction(scale: PatternScale) -> str:
    if scale is PatternScale.ORIGINAL:
        return "PATTERN SCALE: Use the pattern scale exactly as it appears in the swatch relative to the garment."
    return (
        f"PATTERN SCALE: The pattern from Image 2 must be tiled at a {scale.value} scale. "
        f"Adjust the repeat size to look realistic for a {scale.value} print."
    )


def target_instruction(area: TargetArea) -> str:
    if area is TargetArea.WHOLE_OUTFIT:
        return "TARGETING: Apply the new fabric to the primary outfit worn by the model."
    return (
        f"TARGETING: Apply the new fabric ONLY to the {area.value} of the model. "
        "Keep all other garments and accessories unchanged."
    )


_PROMPT_HEAD = dedent("""\
    You are an expert fashion AI specialized in virtual try-on and textile rendering for garment manufacturing.

    Input:
    - Image 1: Reference photo of a model.
    - Image 2: A swatch of fabric design/pattern.

    Task:
    Generate a photorealistic image of the model from Image 1, replacing the material of the target garment with the EXACT fabric design from Image 2.
    """)

_PROMPT_TAIL = dedent("""\
    Critical Instructions:
    1. TEXTURE FIDELITY: The fabric pattern, color, and texture from Image 2 must be applied accurately. Do not alter the design motifs or colors of the pattern.
    2. GEOMETRIC CONSISTENCY: Map the pattern from Image 2 onto the 3D surface of the clothing in Image 1. It must follow the existing folds, wrinkles, and body curvature perfectly.
    3. PHOTOREALISM: Preserve the original lighting, shadows, and shading from Image 1 to ensure the new fabric looks physically real.
    4. PRESERVATION: Do not change the model's face, hair, pose, background, or skin tone. Only the clothing fabric changes.

    Return ONLY the generated image.
    """)


def build_prompt(settings: GenerationSettings) -> str:
    """Детерминированно собирает промпт из параметров генерации."""
    lines = [
        "Configuration:",
        f"1. {target_instruction(settings.target_area)}",
        f"2. {material_instruction(settings.fabric_type)}",
        f"3. {scale_instruction(settings.scale)}",
    ]
    custom = settings.custom_prompt.strip()
    if custom:
        lines.append(f"4. CUSTOM NOTES: {custom}")
    return "\n".join([_PROMPT_HEAD, *lines, "", _PROMPT_TAIL])
