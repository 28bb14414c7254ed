"""
Analysis Orchestrator

Runs the final vendor/product analysis, decides which products are shown
(exact vs approximate matches) and enriches the shown products with images
fetched in parallel.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple

from ..api import AnalysisImageResult, AnalysisResult, BackendClient, RankedProduct
from ..config import WorkflowConfig
from ..tools import compose_user_data_string
from .models import DisplayMode

logger = logging.getLogger(__name__)

ProductKey = Tuple[str, str]


@dataclass
class AnalysisSummary:
    """Which ranked products are displayed and how the result is described"""
    display_mode: DisplayMode
    exact: List[RankedProduct] = field(default_factory=list)
    approximate: List[RankedProduct] = field(default_factory=list)
    count: int = 0
    message: str = ""

    @property
    def displayed(self) -> List[RankedProduct]:
        return self.exact if self.display_mode == DisplayMode.EXACT else self.approximate


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def partition_products(
    ranked_products: List[RankedProduct],
    threshold: Optional[float] = None
) -> AnalysisSummary:
    """
    Split ranked products into exact and approximate matches.

    Exact: requirements_match is True, whatever the score.
    Approximate: requirements_match is False and overall_score (missing = 0)
    reaches the threshold. Products with an unknown match flag are in neither.
    Exact matches are displayed when there is at least one.
    """
    if threshold is None:
        threshold = WorkflowConfig.APPROXIMATE_MATCH_THRESHOLD

    exact = [p for p in ranked_products if p.requirements_match is True]
    approximate = [
        p for p in ranked_products
        if p.requirements_match is False and (p.overall_score or 0) >= threshold
    ]

    if exact:
        return AnalysisSummary(
            display_mode=DisplayMode.EXACT,
            exact=exact,
            approximate=approximate,
            count=len(exact),
            message=f"Found {_plural(len(exact), 'product')} matching all requirements"
        )

    return AnalysisSummary(
        display_mode=DisplayMode.APPROXIMATE,
        exact=exact,
        approximate=approximate,
        count=len(approximate),
        message=f"No exact matches found. Found {_plural(len(approximate), 'close alternative')}"
    )


def build_analysis_input(product_type: str, collected_data: Dict[str, Any]) -> str:
    """Analysis prompt: product type sentence followed by the flattened collected data."""
    return f"Product Type: {product_type}. {compose_user_data_string(collected_data)}"


def _model_families(product: RankedProduct) -> List[str]:
    return [product.model_family] if product.model_family else []


def fetch_product_images(
    client: BackendClient,
    products: List[RankedProduct],
    product_type: str,
    max_workers: Optional[int] = None,
    timeout: Optional[int] = None
) -> Dict[ProductKey, AnalysisImageResult]:
    """
    Fetch images for products in parallel.

    Products without vendor or product name are skipped. A failing fetch is
    logged and leaves that product without images; the other fetches go on.

    Returns:
        Image results keyed by (vendor, product_name)
    """
    targets: Dict[ProductKey, RankedProduct] = {}
    for product in products:
        if not product.vendor or not product.product_name:
            continue
        targets.setdefault(product.key, product)

    if not targets:
        logger.info("[IMAGE_FETCH] No products to fetch images for")
        return {}

    max_workers = max_workers or WorkflowConfig.IMAGE_FETCH_WORKERS
    timeout = timeout or WorkflowConfig.THREAD_POOL_TIMEOUT
    logger.info(f"[IMAGE_FETCH] Fetching images for {len(targets)} products with {max_workers} workers")

    results: Dict[ProductKey, AnalysisImageResult] = {}
    executor = ThreadPoolExecutor(max_workers=max_workers)
    try:
        futures = {
            executor.submit(
                client.get_analysis_product_images,
                product.vendor,
                product_type or "",
                product.product_name,
                _model_families(product)
            ): key
            for key, product in targets.items()
        }

        try:
            for future in as_completed(futures, timeout=timeout):
                vendor, product_name = futures[future]
                try:
                    results[(vendor, product_name)] = future.result()
                except Exception as e:
                    logger.error(f"[IMAGE_FETCH] Failed to fetch images for {vendor} - {product_name}: {e}")
        except FuturesTimeoutError:
            logger.error(
                f"[IMAGE_FETCH] Timed out after {timeout}s; "
                f"{len(results)}/{len(futures)} products have images"
            )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.info(f"[IMAGE_FETCH] Successfully fetched images for {len(results)} products")
    return results


def _image_update(images: AnalysisImageResult) -> Dict[str, Any]:
    return {
        "top_image": images.top_image,
        "vendor_logo": images.vendor_logo,
        "all_images": list(images.all_images),
    }


def apply_product_images(
    analysis: AnalysisResult,
    images: Dict[ProductKey, AnalysisImageResult]
) -> AnalysisResult:
    """
    Merge image results into ranked products and vendor matches by (vendor, product_name).

    Returns a new result; products are never added, removed or reordered.
    """
    if not images:
        return analysis

    ranked = [
        product.model_copy(update=_image_update(images[product.key])) if product.key in images else product
        for product in analysis.overall_ranking.ranked_products
    ]
    matches = [
        match.model_copy(update=_image_update(images[(match.vendor, match.product_name)]))
        if (match.vendor, match.product_name) in images else match
        for match in analysis.vendor_analysis.vendor_matches
    ]

    return analysis.model_copy(update={
        "overall_ranking": analysis.overall_ranking.model_copy(update={"ranked_products": ranked}),
        "vendor_analysis": analysis.vendor_analysis.model_copy(update={"vendor_matches": matches}),
    })


def run_analysis(
    client: BackendClient,
    product_type: str,
    collected_data: Dict[str, Any]
) -> Tuple[AnalysisResult, AnalysisSummary]:
    """
    Analyze products for the collected requirements and enrich the displayed ones with images.

    The returned summary is built from the enriched ranking.

    Raises:
        BackendError: If the analysis call itself fails. Image failures never raise.
    """
    full_input = build_analysis_input(product_type, collected_data)
    logger.info(f"[ANALYSIS] Running analysis for product type: {product_type or '(unknown)'}")

    analysis = client.analyze_products(full_input)
    summary = partition_products(analysis.overall_ranking.ranked_products)
    logger.info(
        f"[ANALYSIS] {len(summary.exact)} exact, {len(summary.approximate)} approximate "
        f"(display mode: {summary.display_mode.value})"
    )

    displayed = summary.displayed
    if displayed:
        images = fetch_product_images(client, displayed, product_type)
        analysis = apply_product_images(analysis, images)
        summary = partition_products(analysis.overall_ranking.ranked_products)
    else:
        logger.info(f"[IMAGE_FETCH] No products to fetch images for (displayMode: {summary.display_mode.value})")

    return analysis, summary
