"""Canned demo scenarios served by the mock provider.

A ``None`` language or domain matches any value.
"""

from gateway.schemas.rag import Citation

DEMO_SCENARIOS: list[dict] = [
    {
        "language": "es",
        "domain": "general",
        "response": (
            "El proyecto ILENIA impulsa el desarrollo de recursos y modelos de "
            "lenguaje para el castellano y las lenguas cooficiales, con corpus "
            "abiertos y evaluaciones comparables entre idiomas."
        ),
        "contexts": [
            Citation(
                id="ilenia-overview",
                title="Proyecto ILENIA: visión general",
                passage="ILENIA coordina el desarrollo de recursos lingüísticos multilingües.",
                url="https://proyectoilenia.es/",
            ),
        ],
    },
    {
        "language": "es",
        "domain": "legal",
        "response": (
            "Según la normativa vigente, los documentos oficiales deben estar "
            "disponibles en castellano y, en las comunidades con lengua "
            "cooficial, también en dicha lengua."
        ),
        "contexts": [
            Citation(
                id="ce-art3",
                title="Constitución Española, artículo 3",
                passage="El castellano es la lengua española oficial del Estado.",
                url="https://www.boe.es/buscar/act.php?id=BOE-A-1978-31229",
            ),
        ],
    },
    {
        "language": "eu",
        "domain": "legal",
        "response": (
            "Euskara eta gaztelania dira Euskal Autonomia Erkidegoko hizkuntza "
            "ofizialak, eta herritarrek biak erabiltzeko eskubidea dute."
        ),
        "contexts": [
            Citation(
                id="eaae-art6",
                title="Autonomia Estatutua, 6. artikulua",
                passage="Euskara, Euskadiko herriaren berezko hizkuntza, ofiziala izango da.",
            ),
        ],
    },
    {
        "language": "ca",
        "domain": None,
        "response": (
            "El català disposa de corpus extensos i de models de llenguatge "
            "oberts que permeten avaluar tasques de comprensió i generació."
        ),
        "contexts": None,
    },
    {
        "language": None,
        "domain": "health",
        "response": (
            "Health guidance depends on the regional service; please consult "
            "the cited sources for the official recommendations."
        ),
        "contexts": [
            Citation(
                id="who-guidance",
                title="World Health Organization guidance",
                passage="Recommendations are adapted by each national health service.",
                url="https://www.who.int/",
            ),
        ],
    },
]

FALLBACK_RESPONSE = (
    "Mock mode: No matching scenario found for this configuration. "
    "Returning generic response."
)
