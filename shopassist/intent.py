"""Keyword-based intent detection."""

from collections.abc import Sequence

from .config import config
from .models import Intent

logger = config.get_logger(__name__)

# Checked first: logistics, returns, orders.
FAQ_KEYWORDS: tuple[str, ...] = (
    "livraison",
    "délais",
    "délai",
    "retour",
    "retours",
    "remboursement",
    "remboursé",
    "commande",
    "colis",
    "expédition",
    "expédier",
    "suivi",
    "track",
    "tracking",
    "annuler ma commande",
    "annulation",
)

PRODUCT_KEYWORDS: tuple[str, ...] = (
    "je cherche",
    "je recherche",
    "je voudrais",
    "je veux",
    "trouver",
    "recherche",
    "produit",
    "article",
    "t-shirt",
    "chaussure",
    "chaussures",
    "pantalon",
    "montre",
    "sac",
    "casquette",
)


class IntentDetector:
    """Maps a raw message to an :class:`Intent` with ordered keyword tables."""

    def __init__(
        self,
        default_intent: Intent | str = Intent.OTHER,
        faq_keywords: Sequence[str] = FAQ_KEYWORDS,
        product_keywords: Sequence[str] = PRODUCT_KEYWORDS,
    ) -> None:
        """Initialize the detector.

        Args:
            default_intent: Intent returned when no keyword matches. ``OTHER``
                is the strict policy, ``FAQ`` sends every unmatched message to
                semantic retrieval.
            faq_keywords: Terms that select the FAQ branch.
            product_keywords: Terms that select the product search branch.
        """
        self.default_intent = Intent(default_intent)
        self.faq_keywords = tuple(kw.lower() for kw in faq_keywords)
        self.product_keywords = tuple(kw.lower() for kw in product_keywords)

    @classmethod
    def from_config(cls) -> "IntentDetector":
        return cls(default_intent=config.INTENT_DEFAULT)

    def detect(self, message: str) -> Intent:
        """Classify a message.

        FAQ keywords win over product keywords when both match.

        Returns:
            The detected intent, or the configured default when nothing matches.
        """
        text = message.lower()

        if any(kw in text for kw in self.faq_keywords):
            return Intent.FAQ

        if any(kw in text for kw in self.product_keywords):
            return Intent.PRODUCT_SEARCH

        return self.default_intent
