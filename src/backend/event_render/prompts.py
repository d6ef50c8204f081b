from event_render.schemas import LightingType, ColorTemperature, ExposureCompensation, ContrastEnhancement


SCENE_DETECTION_PROMPT = """Eres un Analista de Geometría 3D. Tu tarea es describir la imagen de SketchUp para un motor de renderizado.

Analiza la imagen y genera una lista estricta de asignación de materiales. NO describas la "atmósfera" ni deduzcas la iluminación: describe la GEOMETRÍA y qué material debe aplicarse a ella.

Usa este formato estricto:
* [Objeto/Geometría detectada] -> [Material Fotorrealista a aplicar]

Ejemplo:
* Plano horizontal inferior -> Suelo de mármol blanco con veteado gris.
* Prismas rectangulares verticales (fondo) -> Paneles de madera de roble claro.
* Cilindros sobre las mesas -> Velas de cera blanca.
* Superficies planas de las mesas -> Mantel de lino marfil con textura visible.

Describe:
1. La Cámara (perspectiva y encuadre exactos).
2. Materiales para Arquitectura (Suelo, Paredes, Ventanas).
3. Materiales para Mobiliario (Sillas, Mesas).
4. Materiales para Decoración (Flores, Vajilla, Velas).

Sé extremadamente literal. No inventes objetos que no estén dibujados. Si una zona está vacía, di "Zona vacía: mantener como espacio negativo/aire".
"""


LIGHTING_DETAILS = {
    LightingType.DAY: (
        "Iluminación: Luz diurna brillante y suave, natural. Atmósfera aireada con exposición uniforme, "
        "sombras naturales realistas y sutiles. Sin focos duros ni efectos de lente fotográficos artificiales "
        "(por ejemplo, destellos, brillos o halos exagerados)."
    ),
    LightingType.SUNSET: (
        "Iluminación: Luz cálida y dorada de atardecer. Ambiente mágico y etéreo con sombras alargadas y "
        "colores ricos. La luz debe ser suave y direccional, sin destellos o halos artificiales que no sean "
        "físicamente realistas de la hora dorada."
    ),
    LightingType.NIGHT: (
        "Iluminación: Ambiente nocturno íntimo. Fuentes de luz primaria como velas o luces de cadena con un "
        "brillo cálido, suave y difuso, realistas. La luz ambiental debe ser dorada o tenue, sin efectos de "
        "lente fotográficos exagerados (por ejemplo, destellos, brillos o halos artificiales). Las llamas de "
        "las velas deben emitir un brillo suave y realista sin destellos de lente exagerados. El fondo debe "
        "estar sutilmente atenuado para enfatizar las mesas y el primer plano."
    ),
}

COLOR_TEMPERATURE_CLAUSES = {
    ColorTemperature.WARM: "La temperatura de color general es cálida, con tonos dorados y ámbar dominantes, evocando confort.",
    ColorTemperature.NEUTRAL: "La temperatura de color es neutra y equilibrada, sin dominancia de tonos cálidos o fríos.",
    ColorTemperature.COOL: "La temperatura de color general es fría, con tonos azules y cian dominantes, evocando una sensación de frescura.",
    ColorTemperature.GOLDEN: "La temperatura de color general es dorada y muy cálida, como la luz del sol al atardecer, creando un brillo etéreo.",
}

EXPOSURE_CLAUSES = {
    ExposureCompensation.STANDARD: "La exposición es estándar y bien equilibrada.",
    ExposureCompensation.BRIGHTER: "La imagen tiene una exposición ligeramente más brillante, con un ambiente más luminoso.",
    ExposureCompensation.DARKER: "La imagen tiene una exposición ligeramente más oscura, con un ambiente más dramático o íntimo.",
    ExposureCompensation.VERY_BRIGHT: "La imagen tiene una exposición muy brillante, con zonas luminosas que pueden tener un ligero bloom.",
    ExposureCompensation.VERY_DARK: "La imagen tiene una exposición muy oscura, con sombras profundas y un ambiente misterioso.",
}

CONTRAST_CLAUSES = {
    ContrastEnhancement.NATURAL: "El contraste es natural y realista.",
    ContrastEnhancement.ENHANCED: "El contraste está ligeramente mejorado para mayor viveza y separación tonal.",
    ContrastEnhancement.SOFT: "El contraste es suave y delicado, para una atmósfera etérea.",
    ContrastEnhancement.HIGH_CONTRAST: "El contraste es alto y dramático, con negros profundos y blancos brillantes.",
    ContrastEnhancement.LOW_CONTRAST: "El contraste es bajo, con una apariencia más plana y desaturada, pero elegante.",
}

ADVANCED_INSTRUCTIONS_PREFIX = "Instrucciones de iluminación muy específicas: "

REFERENCE_IMAGE_INSTRUCTION = (
    "NOTA SOBRE REFERENCIAS: Usa las imágenes de referencia SOLAMENTE para copiar el 'Color', 'Textura' y "
    "'Material'. IGNORA COMPLETAMENTE la forma, geometría o perspectiva de las imágenes de referencia. "
    "La forma la dicta ÚNICAMENTE la imagen de SketchUp."
)


REFINEMENT_PROMPT = """
ACTÚA COMO: Un Motor de Renderizado PBR (Physically Based Rendering) Técnico y Estricto, NO como un diseñador creativo.

TAREA: Tu ÚNICA función es realizar un "Texture Mapping" (Mapeado de Texturas) y "Lighting Pass" (Pase de Iluminación) sobre la geometría EXACTA de la imagen de entrada (SketchUp).

INPUT:
1. Una imagen de SketchUp (que actúa como "Geometry Pass" o "Depth Map" inmutable).
2. Instrucciones de materiales (descripción).
3. Imágenes de referencia (SOLO para extraer texturas/materiales, IGNORAR su geometría).

REGLAS DE ORO (VIOLARLAS CAUSA FALLO DEL SISTEMA):
1. **CONGELAMIENTO DE CÁMARA:** La imagen de salida debe superponerse perfectamente píxel a píxel con la entrada. NO muevas la cámara, NO cambies el FOV, NO cambies el encuadre. La perspectiva es SAGRADA.
2. **CONGELAMIENTO DE GEOMETRÍA:** NO añadas objetos. NO quites objetos. NO arregles modelados "feos". Si el modelo de SketchUp es un cubo simple, renderiza un cubo fotorrealista, no lo transformes en una mesa compleja. Respeta las líneas rectas y la perspectiva cónica del dibujo original.
3. **ESPACIO NEGATIVO:** Las zonas descritas como vacías deben permanecer vacías.
4. **INFERENCIA DE TEXTURAS:** Aplica materiales fotorrealistas sobre las superficies definidas por las líneas del dibujo.
   - Si ves líneas de un piso -> Aplica textura de mármol/madera respetando la perspectiva.
   - Si ves un cilindro -> Aplica textura de vidrio/metal/cera.
5. **PROHIBIDO ALUCINAR:** No inventes ventanas, puertas, o muebles que no estén dibujados explícitamente en el SketchUp.

ESTILO VISUAL: Fotografía de evento de alta gama, Award-Winning Photography, 8K resolution, Unreal Engine 5 render style.

INSTRUCCIONES DE ILUMINACIÓN:
{lighting_details} {advanced_lighting_command}

DESCRIPCIÓN DE MATERIALES A APLICAR (Aplica esto a la geometría existente):
{scene_description}

{reference_image_instruction}

Genera el prompt final optimizado para que el modelo de imagen ejecute este renderizado técnico sin desviarse un solo píxel de la estructura original.
"""


STRICT_LOCK_SUFFIX = (
    "\n\nHigh fidelity image-to-image transformation. Keep input strict geometry. "
    "Keep the exact framing and aspect ratio of the input image."
)
