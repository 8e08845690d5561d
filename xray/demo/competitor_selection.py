"""
Competitor product selection demo.

A five-step pipeline that picks the closest competitor to a reference
product, recording every step on an X-Ray trace:

1. keyword_generation       — search keywords from the product title
2. candidate_search         — mock catalog search
3. apply_filters            — price / rating / review thresholds (decision: filter)
4. llm_relevance_evaluation — mock LLM drops accessories (evaluation step)
5. rank_and_select          — weighted score, pick the top one (decision: select)

Usage:
    snapshot = await run_competitor_selection()
    snapshot = await run_competitor_selection(store=ExecutionStore(db))
"""

import random
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from xray.demo.mock_data import (
    REFERENCE_PRODUCT,
    TOTAL_SEARCH_MATCHES,
    Product,
    generate_keywords,
    simulate_search,
)
from xray.tracing.execution import OUTCOME_FILTER, OUTCOME_SELECT, Decision
from xray.tracing.runner import traced_execution
from xray.tracing.store import ExecutionStore
from xray.utils.logger import get_logger

logger = get_logger(__name__)

DEMO_NAME = "Competitor Product Selection Demo"
SEARCH_LIMIT = 50
MOCK_MODEL = "gpt-4-mock"


class FilterCriteria(BaseModel):
    """Thresholds a candidate must meet to stay in the pool."""
    price_min_ratio: float = Field(default=0.5, gt=0)
    price_max_ratio: float = Field(default=2.0, gt=0)
    min_rating: float = Field(default=3.8, ge=0, le=5)
    min_reviews: int = Field(default=100, ge=0)

    @model_validator(mode="after")
    def _check_price_band(self) -> "FilterCriteria":
        if self.price_max_ratio <= self.price_min_ratio:
            raise ValueError("price_max_ratio must be greater than price_min_ratio")
        return self


class RankingWeights(BaseModel):
    """Weights of the composite ranking score."""
    review_count: float = 0.60
    rating: float = 0.25
    price_proximity: float = 0.15


def _evaluate_filters(product: Product, price_min: float, price_max: float,
                      criteria: FilterCriteria) -> Dict[str, Any]:
    price_in_range = price_min <= product.price <= price_max
    rating_ok = product.rating >= criteria.min_rating
    reviews_ok = product.reviews >= criteria.min_reviews

    if price_in_range:
        price_detail = f"${product.price} is within ${price_min:.2f}-${price_max:.2f}"
    else:
        side = "below" if product.price < price_min else "above"
        price_detail = f"${product.price} is {side} range"

    return {
        "asin": product.asin,
        "title": product.title,
        "metrics": {"price": product.price, "rating": product.rating, "reviews": product.reviews},
        "filter_results": {
            "price_range": {"passed": price_in_range, "detail": price_detail},
            "min_rating": {
                "passed": rating_ok,
                "detail": (f"{product.rating} >= {criteria.min_rating}" if rating_ok
                           else f"{product.rating} < {criteria.min_rating}"),
            },
            "min_reviews": {
                "passed": reviews_ok,
                "detail": (f"{product.reviews} >= {criteria.min_reviews}" if reviews_ok
                           else f"{product.reviews} < {criteria.min_reviews}"),
            },
        },
        "qualified": price_in_range and rating_ok and reviews_ok,
    }


def _score(product: Product, reference: Product, price_min: float, price_max: float,
           weights: RankingWeights) -> Dict[str, Any]:
    review_score = min(product.reviews / 10000, 1)
    rating_score = (product.rating - 3.5) / 1.5
    band = price_max - price_min
    # A free reference product collapses the band; only equal prices qualify then
    price_proximity = 1 - abs(product.price - reference.price) / band if band > 0 else 1.0
    total = (
        review_score * weights.review_count
        + rating_score * weights.rating
        + price_proximity * weights.price_proximity
    )
    return {
        "rank": 0,
        "asin": product.asin,
        "title": product.title,
        "metrics": {"price": product.price, "rating": product.rating, "reviews": product.reviews},
        "score_breakdown": {
            "review_count_score": review_score,
            "rating_score": rating_score,
            "price_proximity_score": price_proximity,
        },
        "total_score": max(0.0, min(1.0, total)),
    }


async def run_competitor_selection(
    store: Optional[ExecutionStore] = None,
    reference: Product = REFERENCE_PRODUCT,
    criteria: Optional[FilterCriteria] = None,
    weights: Optional[RankingWeights] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Run the demo pipeline and return the execution snapshot.

    If a store is given the snapshot is saved and carries its storedId.
    """
    criteria = criteria or FilterCriteria()
    weights = weights or RankingWeights()
    rng = rng or random.Random()

    async with traced_execution(DEMO_NAME, store=store) as xray:
        # 1. Keywords
        keywords = generate_keywords(reference.title)
        xray.record_step(
            "keyword_generation",
            {"product_title": reference.title, "category": reference.category},
            {"keywords": keywords, "model": MOCK_MODEL},
            "Extracted key product attributes: material (stainless steel), capacity (32oz), "
            f"feature (insulated). Generated {len(keywords)} keyword variations for search optimization.",
        )

        # 2. Search
        candidates = simulate_search()
        xray.record_step(
            "candidate_search",
            {"keyword": keywords[0], "limit": SEARCH_LIMIT},
            {
                "total_results": TOTAL_SEARCH_MATCHES,
                "candidates_fetched": len(candidates),
                "candidates": [c.model_dump(exclude_none=True) for c in candidates],
            },
            f"Fetched top {len(candidates)} results by relevance; "
            f"{TOTAL_SEARCH_MATCHES} total matches found in product catalog.",
        )

        # 3. Filters
        price_min = reference.price * criteria.price_min_ratio
        price_max = reference.price * criteria.price_max_ratio
        evaluations = [_evaluate_filters(p, price_min, price_max, criteria) for p in candidates]
        qualified = [e for e in evaluations if e["qualified"]]

        xray.record_step(
            "apply_filters",
            {
                "candidates_count": len(candidates),
                "reference_product": reference.model_dump(exclude_none=True),
                "filters": {
                    "price_range": f"${price_min:.2f}-${price_max:.2f}",
                    "min_rating": criteria.min_rating,
                    "min_reviews": criteria.min_reviews,
                },
            },
            {
                "total_evaluated": len(evaluations),
                "passed": len(qualified),
                "failed": len(evaluations) - len(qualified),
            },
            f"Applied price (${price_min:.2f}-${price_max:.2f}), rating ({criteria.min_rating}+), "
            f"and review count ({criteria.min_reviews}+) filters. "
            f"Narrowed candidates from {len(evaluations)} to {len(qualified)}.",
            decision=Decision(
                outcome=OUTCOME_FILTER,
                reason=f"{len(qualified)} candidates passed all filter criteria",
                confidence=1.0,
            ),
            metadata={"evaluations": evaluations},
        )

        # 4. Relevance check (mock LLM: accessories are not competitors)
        llm_evaluations = [
            {
                "asin": c["asin"],
                "title": c["title"],
                "is_competitor": "Brush" not in c["title"] and "Set" not in c["title"],
                "confidence": rng.random() * 0.1 + 0.9,
            }
            for c in qualified
        ]
        confirmed = [e for e in llm_evaluations if e["is_competitor"]]
        removed = len(llm_evaluations) - len(confirmed)

        xray.record_evaluation_step(
            step="llm_relevance_evaluation",
            input={
                "candidates_count": len(qualified),
                "reference_product": {
                    "asin": reference.asin,
                    "title": reference.title,
                    "category": reference.category,
                },
                "model": MOCK_MODEL,
            },
            evaluations=llm_evaluations,
            output={
                "total_evaluated": len(llm_evaluations),
                "confirmed_competitors": len(confirmed),
                "false_positives_removed": removed,
            },
            reasoning=f"LLM identified and removed {removed} false positives "
                      "(accessories and replacement parts).",
            confidence=0.95,
        )

        # 5. Rank and select
        by_asin = {p.asin: p for p in candidates}
        ranked: List[Dict[str, Any]] = sorted(
            (_score(by_asin[c["asin"]], reference, price_min, price_max, weights) for c in confirmed),
            key=lambda r: r["total_score"],
            reverse=True,
        )
        for position, entry in enumerate(ranked, 1):
            entry["rank"] = position

        if not ranked:
            raise ValueError("No competitor survived filtering and relevance evaluation")
        selected = ranked[0]

        xray.record_step(
            "rank_and_select",
            {
                "candidates_count": len(confirmed),
                "reference_product": reference.model_dump(exclude_none=True),
                "ranking_weights": {
                    "review_count_score": f"{weights.review_count:.0%}",
                    "rating_score": f"{weights.rating:.0%}",
                    "price_proximity_score": f"{weights.price_proximity:.0%}",
                },
            },
            {
                "selected_competitor": {
                    "asin": selected["asin"],
                    "title": selected["title"],
                    **selected["metrics"],
                },
            },
            f"Ranked {len(confirmed)} competitors using review count ({weights.review_count:.0%} weight), "
            f"rating ({weights.rating:.0%} weight), and price proximity "
            f"({weights.price_proximity:.0%} weight). "
            f"Selected {selected['title']} with score {selected['total_score']:.2f}.",
            decision=Decision(
                outcome=OUTCOME_SELECT,
                reason="Selected top-ranked competitor with highest composite score",
                confidence=selected["total_score"],
            ),
            metadata={"ranked_candidates": ranked[:3]},
        )

        xray.mark_complete(f"Selected {selected['title']} as top competitor")

    logger.info(f"Demo selected {selected['asin']} ({selected['title']})")
    return xray.serialize()
