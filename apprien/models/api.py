"""
API Models - Pydantic models for Apprien Game API payloads.
"""

from pydantic import BaseModel, Field, ValidationError

from apprien.exceptions import PriceParseError


class PriceVariant(BaseModel):
    """One entry of the bulk prices response."""

    base: str = Field(..., description="Base IAP id the variant belongs to")
    variant: str = Field(..., description="Apprien variant IAP id for the base product")


class PriceVariantList(BaseModel):
    """GET /api/v1/stores/{store}/games/{package}/prices response body."""

    products: list[PriceVariant]


def parse_price_variants(raw_json: str) -> PriceVariantList:
    """
    Parse the bulk prices response.

    The whole payload is validated before anything is returned, so a
    malformed entry anywhere rejects the batch.

    Raises:
        PriceParseError: If the body is not valid JSON or has the wrong shape
    """
    try:
        return PriceVariantList.model_validate_json(raw_json)
    except ValidationError as exc:
        raise PriceParseError(f"{exc.error_count()} validation error(s)") from exc
