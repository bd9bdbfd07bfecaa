"""On-demand extraction endpoint."""

from fastapi import APIRouter, Depends

from pricewatch.dependencies import get_fetcher
from pricewatch.schemas import ApiResponse, ScrapeRequest, ScrapeResponse
from pricewatch.scrapers.utils.normalizer import parse_price

router = APIRouter()


@router.post("", response_model=ApiResponse)
async def scrape_url(body: ScrapeRequest, fetcher=Depends(get_fetcher)):
    """Extract a product page without tracking it.

    Useful to preview what adding the product would store.
    """
    result = await fetcher.scrape(body.url)
    data = result.to_dict()
    diagnostics = data.pop("diagnostics", {})
    return ApiResponse(
        status="success",
        data=ScrapeResponse(
            **data,
            parsed_price=parse_price(result.price, result.currency),
            diagnostics=diagnostics,
        ),
    )
