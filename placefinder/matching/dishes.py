"""Menu dish search on top of the synonym dictionaries."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from rapidfuzz import fuzz, process

from placefinder.matching.synonyms import (
    BEVERAGE_TERMS,
    CUISINE_FAMILIES,
    FOOD_CATEGORIES,
    MEAL_TIMES,
    category_terms,
    is_category_term,
    normalize_term,
    plural_forms,
    related_terms,
    synonyms_of,
)

logger = logging.getLogger(__name__)

EXACT = "exact"
PARTIAL = "partial"
FUZZY = "fuzzy"
_MATCH_ORDER = {EXACT: 0, PARTIAL: 1, FUZZY: 2}

FUZZY_FALLBACK_LIMIT = 10
FUZZY_MIN_SCORE = 60
DRINK_WORDS = (
    "coffee", "tea", "latte", "cappuccino", "espresso", "soda", "juice", "smoothie",
    "shake", "water", "lemonade", "beer", "wine", "cocktail", "mocktail",
)


@dataclass(frozen=True)
class Dish:
    id: str
    name: str


@dataclass(frozen=True)
class DishMatch:
    dish: Dish
    score: int
    match_type: str

    @property
    def is_exact(self) -> bool:
        return self.score >= 95


def _keep_best(results: Dict[str, DishMatch], match: DishMatch) -> None:
    current = results.get(match.dish.id)
    if current is None or match.score > current.score:
        results[match.dish.id] = match


def _term_hit(dish_name: str, dish_words: Sequence[str], item: str) -> int:
    """0 for no hit, 2 when the dish name contains the item, 1 for a word-level hit."""
    normalized = normalize_term(item)
    if not normalized:
        return 0
    if normalized in dish_name:
        return 2
    forms = set(plural_forms(normalized))
    if any(word in forms for word in dish_words):
        return 1
    return 0


def _beverage_score(dish_name: str, dish_words: Sequence[str]) -> int:
    score = 0
    for items in FOOD_CATEGORIES["beverages"].values():
        for item in items:
            normalized = normalize_term(item)
            if normalized in dish_name or normalized in dish_words:
                score = 85
    for word in DRINK_WORDS:
        if any(w == word or word in w for w in dish_words):
            score = max(score, 80)
    return score


def _category_score(dish_name: str, dish_words: Sequence[str], category: str) -> int:
    score = 0
    variants = plural_forms(category)
    for variant in variants:
        for main_category, subcategories in FOOD_CATEGORIES.items():
            if normalize_term(main_category) == variant:
                for items in subcategories.values():
                    for item in items:
                        hit = _term_hit(dish_name, dish_words, item)
                        if hit:
                            score = max(score, 90 if hit == 2 else 85)
            for subcategory, items in subcategories.items():
                if normalize_term(subcategory) == variant:
                    for item in items:
                        hit = _term_hit(dish_name, dish_words, item)
                        if hit:
                            score = max(score, 95 if hit == 2 else 90)
        for groups in (MEAL_TIMES, CUISINE_FAMILIES):
            for key, items in groups.items():
                if normalize_term(key) == variant:
                    for item in items:
                        hit = _term_hit(dish_name, dish_words, item)
                        if hit:
                            score = max(score, 90 if hit == 2 else 85)
        for synonym in synonyms_of(variant):
            if synonym in dish_words:
                score = max(score, 85)
            elif synonym in dish_name:
                score = max(score, 80)
    return score


def _category_matches(dishes: Iterable[Dish], category: str) -> List[DishMatch]:
    matches: List[DishMatch] = []
    for dish in dishes:
        dish_name = normalize_term(dish.name)
        dish_words = dish_name.split(" ")
        if category in BEVERAGE_TERMS:
            score = _beverage_score(dish_name, dish_words)
        else:
            score = _category_score(dish_name, dish_words, category)
        if score:
            matches.append(DishMatch(dish=dish, score=score, match_type=FUZZY))
    return matches


def search_dishes(dishes: Sequence[Dish], term: str, min_score: int = 10) -> List[DishMatch]:
    """Rank dishes against a term using exact, synonym, word, category and fuzzy tiers."""
    normalized = normalize_term(term)
    if len(normalized) < 2:
        return [DishMatch(dish=dish, score=100, match_type=EXACT) for dish in dishes]

    started = time.perf_counter()
    results: Dict[str, DishMatch] = {}

    if is_category_term(normalized):
        logger.debug("Category dish search for %r", normalized)
        for match in _category_matches(dishes, normalized):
            _keep_best(results, match)

    expanded = related_terms(normalized)
    original_words = set(normalized.split(" "))

    for dish in dishes:
        dish_name = normalize_term(dish.name)
        dish_words = dish_name.split(" ")
        score, match_type = 0, FUZZY
        if dish_name == normalized:
            score, match_type = 100, EXACT
        elif dish_name in expanded:
            score, match_type = 95, EXACT
        else:
            related_words = [word for word in dish_words if word in expanded]
            if any(word in original_words for word in related_words):
                score, match_type = 90, PARTIAL
            elif related_words:
                score, match_type = 80, PARTIAL
            elif normalized in dish_name:
                score, match_type = 70, FUZZY
        if score >= min_score and score > 0:
            _keep_best(results, DishMatch(dish=dish, score=score, match_type=match_type))

    if len(results) < FUZZY_FALLBACK_LIMIT:
        by_id = {dish.id: dish for dish in dishes}
        choices = {dish.id: normalize_term(dish.name) for dish in dishes if dish.id not in results}
        # fuzzy hits are capped at 60 so they never outrank a substring match
        for _, ratio, dish_id in process.extract(
            normalized,
            choices,
            scorer=fuzz.WRatio,
            limit=FUZZY_FALLBACK_LIMIT,
            score_cutoff=FUZZY_MIN_SCORE,
        ):
            score = round(60 * ratio / 100)
            if score >= min_score:
                _keep_best(results, DishMatch(dish=by_id[dish_id], score=score, match_type=FUZZY))

    logger.debug(
        "Dish search for %r finished in %.2fms with %d results",
        term,
        (time.perf_counter() - started) * 1000,
        len(results),
    )
    return sorted(
        results.values(),
        key=lambda match: (not match.is_exact, _MATCH_ORDER[match.match_type], -match.score),
    )


def find_similar_dishes(dishes: Sequence[Dish], name: str, threshold: int = 75) -> List[DishMatch]:
    """Existing dishes close enough to ``name`` to warn about a duplicate entry."""
    return [match for match in search_dishes(dishes, name, min_score=0) if match.score >= threshold]


def similarity_description(score: int) -> str:
    if score >= 95:
        return "Very similar"
    if score >= 85:
        return "Similar"
    if score >= 75:
        return "Somewhat similar"
    return "Possibly related"


def dishes_in_category(dishes: Sequence[Dish], category: str) -> List[Dish]:
    """Dishes whose names mention any member of ``category``."""
    members = category_terms(category)
    found: List[Dish] = []
    for dish in dishes:
        name = normalize_term(dish.name)
        if any(member and member in name for member in members):
            found.append(dish)
    return found
