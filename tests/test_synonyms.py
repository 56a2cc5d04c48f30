from placefinder.matching import synonyms


def test_related_terms_includes_plural_and_synonyms():
    related = synonyms.related_terms("Latte")
    assert {"latte", "lattes", "coffee", "cappuccino", "flat white"} <= related


def test_related_terms_is_bidirectional():
    related = synonyms.related_terms("java")
    assert "coffee" in related
    assert {"latte", "espresso"} <= related
    assert synonyms.canonical_term("java") == "coffee"


def test_related_terms_singularizes():
    assert "taco" in synonyms.related_terms("tacos")
    assert "fries" in synonyms.related_terms("fry")


def test_unknown_term_degrades_to_itself_and_plural():
    assert synonyms.related_terms("quokka") == {"quokka", "quokkas"}
    assert synonyms.related_terms("") == set()


def test_compound_variants():
    variants = synonyms.compound_variants("mac and cheese")
    assert {"mac & cheese", "mac n cheese", "mac cheese"} <= set(variants)


def test_is_category_term():
    assert synonyms.is_category_term("Italian")
    assert synonyms.is_category_term("dessert")
    assert synonyms.is_category_term("desserts")
    assert synonyms.is_category_term("Hot Beverages")
    assert synonyms.is_category_term("drinks")
    assert not synonyms.is_category_term("pizza")


def test_category_terms_flattens_nested_groups():
    bakery = synonyms.category_terms("bakery")
    assert {"bagel", "croissant", "naan", "sourdough"} <= bakery
    assert "bagel" in synonyms.category_terms("jewish")
    assert "coffee" in synonyms.category_terms("drinks")


def test_category_terms_for_unknown_term():
    assert synonyms.category_terms("pizza") == {"pizza", "pizzas"}


def test_reverse_index_is_built_once():
    assert synonyms._REVERSE_SYNONYMS["guac"] == "guacamole"
    assert synonyms._REVERSE_SYNONYMS["coffee"] == "coffee"
