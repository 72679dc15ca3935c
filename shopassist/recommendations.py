"""HTTP client for the product recommendation service."""

import httpx

from .config import config
from .models import RecommendationItem

logger = config.get_logger(__name__)


class RecommendationClient:
    """Fetches products related to a given product id."""

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the recommendation service.
            timeout: Request timeout in seconds. If None, uses config.RECO_TIMEOUT.
            http_client: Optional preconfigured ``httpx.Client``.
        """
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.Client(
            timeout=timeout if timeout is not None else config.RECO_TIMEOUT,
            headers={"Accept": "application/json", **config.get_api_headers()},
        )

    def get_recommendations(self, product_id: str) -> list[RecommendationItem]:
        """Recommendations for a product.

        Transport errors are raised; callers decide whether to degrade.

        Returns:
            Parsed items; empty when the service answers non-200 or with an
            unexpected body.
        """
        response = self.http_client.get(
            f"{self.base_url}/api/recommendations",
            params={"product_id": product_id},
        )
        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Recommendation API returned %d for product %s",
                response.status_code,
                product_id,
            )
            return []

        data = response.json()
        if not isinstance(data, list):
            logger.warning("Recommendation API returned a non-list body")
            return []

        return [
            RecommendationItem(
                id=str(item.get("id", "")),
                name=item.get("name"),
                title=item.get("title"),
                slug=item.get("slug"),
                description=item.get("description"),
                category=item.get("category"),
            )
            for item in data
            if isinstance(item, dict) and item.get("id") is not None
        ]

    def close(self) -> None:
        self.http_client.close()
