"""Prompt templates and canned answers (French storefront)."""

from collections.abc import Sequence

from .models import Message, ProductCandidate, RecommendationItem, ScoredCandidate

SYSTEM_PROMPT = (
    "Tu es l'assistant client de ShopyVerse, une boutique en ligne. "
    "Tu réponds uniquement à partir des informations fournies dans le contexte. "
    "Si le contexte ne suffit pas pour répondre, dis-le honnêtement et invite "
    "le client à contacter le support. "
    "Tu réponds toujours en français, de manière polie, concise et utile."
)

# Delimiters are part of the contract the generation model is tuned against.
RAG_PROMPT_TEMPLATE = """===== CONTEXTE =====
{context}
===== FIN CONTEXTE =====

Question du client :
{question}

Ta réponse (une ou deux phrases maximum) :"""

FAQ_FALLBACK_ANSWER = (
    "Je suis désolé, je n'ai pas trouvé d'information précise à ce sujet dans ma "
    "base de connaissances. Pouvez-vous reformuler ou contacter le support ?"
)

PRODUCT_NOT_FOUND_ANSWER = (
    "Je n'ai trouvé aucun produit correspondant à votre recherche dans notre "
    "catalogue. Pouvez-vous préciser ce que vous cherchez (type d'article, "
    "couleur, matière) ?"
)

OUT_OF_DOMAIN_ANSWER = (
    "Je suis l'assistant virtuel de ShopyVerse. Je peux vous aider concernant la "
    "livraison, les retours, les commandes et la recherche de produits. "
    "Cette question sort de mon domaine d'expertise. Pouvez-vous reformuler votre "
    "demande en lien avec votre expérience sur ShopyVerse ?"
)

PRODUCT_LIST_INTRO = "Voici quelques produits qui pourraient vous intéresser :"
RECOMMENDATIONS_INTRO = "Vous aimerez peut-être aussi :"
UNCATEGORIZED = "Sans catégorie"


def build_rag_prompt(context_lines: Sequence[str], question: str) -> str:
    """Fill the grounding template with one bullet per evidence text.

    Returns:
        The final user-turn prompt.
    """
    context = "\n".join(f"- {line}" for line in context_lines)
    return RAG_PROMPT_TEMPLATE.format(context=context, question=question)


def compose_messages(
    evidence: Sequence[ScoredCandidate],
    user_message: str,
    history: Sequence[Message],
) -> list[Message]:
    """Build the message list sent to the generation model.

    Returns:
        System instruction, the prior history verbatim, then the grounding prompt.
    """
    grounding = build_rag_prompt([c.content for c in evidence], user_message)
    return [
        Message(role="system", content=SYSTEM_PROMPT),
        *history,
        Message(role="user", content=grounding),
    ]


def format_product_list(products: Sequence[ProductCandidate]) -> str:
    lines = [PRODUCT_LIST_INTRO]
    for i, product in enumerate(products, start=1):
        category = product.category_name or UNCATEGORIZED
        lines.append(f"{i}. {product.title} ({category}) — {product.description}")
    return "\n".join(lines)


def format_recommendations(items: Sequence[RecommendationItem]) -> str:
    lines = [RECOMMENDATIONS_INTRO]
    lines.extend(f"- {item.label}" for item in items)
    return "\n".join(lines)
