"""Curated food dictionaries and term expansion over them.

All lookups are pure; unknown terms expand to themselves plus their naive
plural/singular forms.
"""

import re
from typing import Dict, Iterable, List, Set

FOOD_CATEGORIES: Dict[str, Dict[str, List[str]]] = {
    "beverages": {
        "hot beverages": ["coffee", "tea", "hot chocolate", "chai", "matcha"],
        "cold beverages": ["soda", "juice", "smoothie", "iced tea", "lemonade"],
        "alcoholic": ["beer", "wine", "cocktail", "martini", "margarita"],
        "specialty drinks": ["bubble tea", "boba", "kombucha", "milkshake"],
    },
    "appetizers": {
        "starters": ["appetizer", "starter", "antipasto", "hors d'oeuvre", "small plate"],
        "dips": ["hummus", "guacamole", "salsa", "queso", "spinach dip"],
        "finger foods": ["wings", "nachos", "bruschetta", "crostini", "calamari"],
    },
    "mains": {
        "proteins": ["chicken", "beef", "pork", "fish", "seafood", "tofu"],
        "preparations": ["grilled", "fried", "baked", "roasted", "steamed"],
        "dishes": ["pasta", "pizza", "burger", "sandwich", "steak", "curry"],
    },
    "desserts": {
        "cakes": ["cake", "cupcake", "cheesecake", "tiramisu", "torte"],
        "frozen": ["ice cream", "gelato", "sorbet", "frozen yogurt", "popsicle"],
        "pastries": ["pie", "tart", "pastry", "croissant", "donut", "doughnut"],
        "sweets": ["cookie", "brownie", "chocolate", "candy", "fudge"],
    },
    "bakery": {
        "breads": ["bread", "baguette", "ciabatta", "sourdough", "rye", "pumpernickel", "challah", "brioche", "focaccia"],
        "rolls": ["bagel", "bialy", "roll", "bun", "kaiser roll", "dinner roll", "pretzel"],
        "pastries": ["croissant", "danish", "pain au chocolat", "turnover", "strudel", "palmier"],
        "sweet bakery": ["muffin", "scone", "coffee cake", "cinnamon roll", "sticky bun", "bear claw"],
        "flatbreads": ["pita", "naan", "tortilla", "lavash", "matzo"],
    },
}

FOOD_SYNONYMS: Dict[str, List[str]] = {
    # beverages
    "beverage": ["drink", "beverages", "drinks", "refreshment"],
    "beverages": ["beverage", "drinks", "refreshments"],
    "drink": ["beverage", "drinks", "refreshment", "beverages"],
    "drinks": ["drink", "beverage", "beverages", "refreshments"],
    "coffee": ["latte", "cappuccino", "espresso", "americano", "macchiato", "mocha", "caffè", "cafe", "java", "joe", "brew"],
    "latte": ["coffee", "cappuccino", "café latte", "cafe latte", "flat white"],
    "cappuccino": ["coffee", "latte", "capp", "cap", "cappucino"],
    "espresso": ["coffee", "shot", "doppio", "ristretto", "lungo"],
    "americano": ["coffee", "long black", "café americano"],
    "macchiato": ["coffee", "caramel macchiato", "espresso macchiato"],
    "mocha": ["coffee", "chocolate coffee", "café mocha", "mochaccino"],
    "cold brew": ["iced coffee", "cold coffee", "coffee"],
    "iced coffee": ["cold brew", "cold coffee", "coffee"],
    "tea": ["chai", "green tea", "black tea", "herbal tea", "iced tea"],
    "chai": ["tea", "chai tea", "masala chai", "spiced tea"],
    "matcha": ["green tea", "tea", "japanese tea"],
    "bubble tea": ["boba", "pearl milk tea", "tapioca tea", "boba tea"],
    "boba": ["bubble tea", "pearl milk tea", "tapioca tea"],
    # pasta
    "pasta": [
        "spaghetti", "linguine", "fettuccine", "penne", "rigatoni", "noodles", "tagliatelle", "fusilli",
        "macaroni", "lasagna", "ravioli", "tortellini", "gnocchi", "orzo", "angel hair", "bucatini", "cavatappi",
    ],
    "spaghetti": ["pasta", "noodles", "spag"],
    "mac and cheese": ["macaroni and cheese", "mac n cheese", "mac & cheese", "pasta", "macaroni"],
    "mac n cheese": ["macaroni and cheese", "mac and cheese", "mac & cheese"],
    "lasagna": ["lasagne", "pasta"],
    "ravioli": ["pasta", "filled pasta", "stuffed pasta"],
    "gnocchi": ["pasta", "potato pasta", "dumplings"],
    # sandwiches
    "sandwich": ["sub", "hoagie", "grinder", "hero", "panini", "wrap", "sammy", "sando", "sambo"],
    "sub": ["sandwich", "submarine", "hoagie", "grinder", "hero", "po'boy", "spukie", "torpedo"],
    "hoagie": ["sandwich", "sub", "hero", "grinder"],
    "panini": ["sandwich", "grilled sandwich", "pressed sandwich", "toasted sandwich"],
    "wrap": ["sandwich", "burrito", "rolled sandwich"],
    "blt": ["bacon lettuce tomato", "sandwich"],
    "pb&j": ["peanut butter and jelly", "pbj", "sandwich"],
    "club": ["club sandwich", "sandwich"],
    # pizza and burgers
    "pizza": ["pie", "slice", "za"],
    "calzone": ["pizza", "folded pizza", "pizza pocket"],
    "flatbread": ["pizza", "thin crust"],
    "burger": ["hamburger", "cheeseburger", "sandwich", "patty"],
    "hamburger": ["burger", "hamburg"],
    "cheeseburger": ["burger", "hamburger", "cheese burger"],
    "veggie burger": ["vegetarian burger", "plant burger", "beyond burger", "impossible burger"],
    "turkey burger": ["burger", "poultry burger"],
    # poultry and meat
    "chicken": ["pollo", "fowl", "hen", "chick", "chx"],
    "wings": ["chicken wings", "buffalo wings", "hot wings", "bbq wings"],
    "tenders": ["chicken tenders", "chicken strips", "fingers", "chicken fingers", "tendies"],
    "nuggets": ["chicken nuggets", "nugs", "mcnuggets"],
    "rotisserie": ["roasted chicken", "roast chicken", "chicken"],
    "beef": ["steak", "meat", "cow"],
    "steak": ["beef", "filet", "ribeye", "sirloin", "strip", "t-bone", "porterhouse"],
    "brisket": ["beef", "bbq beef", "smoked beef"],
    "prime rib": ["beef", "rib roast", "standing rib roast"],
    # seafood
    "fish": ["seafood", "salmon", "tuna", "cod", "halibut", "tilapia", "bass", "trout", "mahi"],
    "shrimp": ["prawns", "seafood", "scampi"],
    "crab": ["seafood", "crabmeat", "crab cake"],
    "lobster": ["seafood", "langostino"],
    "calamari": ["squid", "seafood", "fried squid"],
    "oysters": ["seafood", "raw bar", "shellfish"],
    "sushi": ["sashimi", "roll", "maki", "nigiri", "japanese", "raw fish"],
    "poke": ["raw fish", "poke bowl", "hawaiian"],
    # baked goods and desserts
    "cake": ["dessert", "torte", "gateau", "cupcake"],
    "ice cream": ["gelato", "sorbet", "frozen yogurt", "froyo", "dessert"],
    "gelato": ["ice cream", "italian ice cream"],
    "pie": ["dessert", "tart"],
    "cookie": ["biscuit", "dessert", "cookies"],
    "brownie": ["dessert", "chocolate dessert", "brownies", "cake"],
    "donut": ["doughnut", "dessert", "pastry"],
    "cupcake": ["cake", "dessert", "fairy cake"],
    "bread": [
        "toast", "loaf", "baguette", "ciabatta", "sourdough", "rye", "pumpernickel", "challah", "brioche",
        "focaccia", "bagel", "bialy", "pita", "lavash",
    ],
    # breakfast
    "eggs": ["egg", "omelette", "scrambled", "fried egg", "poached", "benedict"],
    "omelette": ["eggs", "omelet", "frittata"],
    "pancakes": ["pancake", "flapjacks", "hotcakes", "griddlecakes"],
    "waffles": ["waffle", "belgian waffle"],
    "french toast": ["toast", "bread", "pain perdu"],
    "bacon": ["pork", "breakfast meat", "rashers"],
    "sausage": ["breakfast sausage", "links", "patties"],
    "cereal": ["breakfast", "granola", "muesli"],
    "oatmeal": ["porridge", "oats", "breakfast"],
    "bagel": ["bread", "roll"],
    # asian
    "ramen": ["noodles", "soup", "japanese noodles", "noodle soup"],
    "pho": ["vietnamese soup", "noodle soup", "soup"],
    "pad thai": ["thai noodles", "noodles", "stir fry"],
    "lo mein": ["noodles", "chinese noodles", "stir fry noodles"],
    "chow mein": ["noodles", "chinese noodles", "crispy noodles"],
    "fried rice": ["rice", "chinese rice", "yangzhou rice"],
    "dim sum": ["dumplings", "chinese", "yum cha"],
    "dumplings": ["potstickers", "gyoza", "wontons", "pierogi", "momo"],
    "spring roll": ["egg roll", "lumpia", "vietnamese roll"],
    # mexican / latin
    "taco": ["tacos", "soft taco", "hard taco"],
    "burrito": ["wrap", "burrito bowl"],
    "quesadilla": ["cheese quesadilla", "mexican grilled cheese"],
    "enchilada": ["enchiladas", "rolled tortilla"],
    "fajitas": ["fajita", "sizzling platter"],
    "nachos": ["chips", "loaded nachos", "cheese chips"],
    "guacamole": ["guac", "avocado dip", "dip"],
    "salsa": ["sauce", "dip", "pico de gallo"],
    "tamale": ["tamales", "mexican"],
    # italian
    "risotto": ["rice", "italian rice", "creamy rice"],
    "carbonara": ["pasta", "spaghetti carbonara", "bacon pasta"],
    "alfredo": ["pasta", "fettuccine alfredo", "cream pasta"],
    "marinara": ["tomato sauce", "pasta sauce", "red sauce"],
    "pesto": ["basil sauce", "pasta sauce", "green sauce"],
    "bruschetta": ["appetizer", "italian bread", "antipasto"],
    # indian / south asian
    "curry": ["indian", "masala", "gravy"],
    "tikka masala": ["curry", "chicken tikka masala", "indian"],
    "tandoori": ["indian", "grilled", "clay oven"],
    "naan": ["bread", "indian bread", "flatbread"],
    "samosa": ["indian", "appetizer", "fried pastry"],
    "biryani": ["rice", "indian rice", "spiced rice"],
    "dal": ["lentils", "indian", "daal", "dhal"],
    # drinks
    "soda": ["pop", "soft drink", "cola", "coke", "pepsi", "fizzy drink", "carbonated"],
    "juice": ["fresh juice", "fruit juice"],
    "smoothie": ["juice", "shake", "blended drink"],
    "milkshake": ["shake", "dessert drink", "thick shake"],
    "lemonade": ["lemon drink", "citrus drink", "summer drink"],
    "beer": ["lager", "ale", "ipa", "stout", "pilsner", "brew"],
    "wine": ["vino", "red wine", "white wine", "rosé"],
    "cocktail": ["mixed drink", "alcoholic beverage", "drink"],
    # cooking methods
    "grilled": ["bbq", "barbecue", "char-grilled", "flame-grilled", "broiled"],
    "fried": ["deep-fried", "pan-fried", "sautéed", "crispy", "battered"],
    "baked": ["oven-baked", "roasted", "oven-roasted"],
    "steamed": ["steam-cooked", "healthy", "light"],
    "smoked": ["barbecue", "bbq", "wood-smoked"],
    # abbreviations
    "bbq": ["barbecue", "barbeque", "bar-b-q", "grilled"],
    "w/": ["with"],
    "w/o": ["without"],
    "n": ["and", "&"],
}

CUISINE_FAMILIES: Dict[str, List[str]] = {
    "italian": ["pasta", "pizza", "risotto", "lasagna", "carbonara", "marinara", "pesto", "bruschetta", "panini", "calzone", "tiramisu", "gelato", "cappuccino", "espresso"],
    "mexican": ["taco", "burrito", "enchilada", "quesadilla", "nachos", "fajitas", "tamale", "salsa", "guacamole", "churros", "margarita"],
    "japanese": ["sushi", "ramen", "tempura", "teriyaki", "udon", "bento", "miso", "edamame", "gyoza", "sake", "matcha"],
    "chinese": ["lo mein", "fried rice", "dim sum", "kung pao", "sweet and sour", "wonton", "spring roll", "general tso", "orange chicken", "fortune cookie"],
    "indian": ["curry", "tikka masala", "naan", "biryani", "samosa", "dal", "tandoori", "paneer", "lassi", "chai"],
    "thai": ["pad thai", "tom yum", "green curry", "papaya salad", "satay", "massaman", "sticky rice", "mango sticky rice"],
    "american": ["burger", "hot dog", "bbq", "fried chicken", "mac and cheese", "apple pie", "buffalo wings", "clam chowder", "lobster roll"],
    "french": ["croissant", "quiche", "crepe", "baguette", "coq au vin", "ratatouille", "bouillabaisse", "crème brûlée", "macaron", "pain au chocolat", "brioche", "eclair", "profiterole"],
    "mediterranean": ["hummus", "falafel", "gyro", "kebab", "tzatziki", "baklava", "moussaka", "dolma", "pita", "tabbouleh"],
    "korean": ["kimchi", "bulgogi", "bibimbap", "korean bbq", "japchae", "tteokbokki", "soju", "banchan"],
    "jewish": ["bagel", "lox", "challah", "matzo", "bialy", "knish", "babka", "rugelach", "brisket", "pastrami"],
    "german": ["bratwurst", "sauerkraut", "schnitzel", "pretzel", "pumpernickel", "strudel", "sauerbraten", "spätzle", "beer"],
}

MEAL_TIMES: Dict[str, List[str]] = {
    "breakfast": ["eggs", "pancakes", "waffles", "french toast", "cereal", "oatmeal", "bacon", "sausage", "toast", "bagel", "muffin", "croissant", "yogurt", "granola", "smoothie bowl", "danish", "scone", "coffee cake", "cinnamon roll", "bialy"],
    "brunch": ["eggs benedict", "mimosa", "bloody mary", "quiche", "frittata", "avocado toast", "pancakes", "french toast"],
    "lunch": ["sandwich", "salad", "soup", "wrap", "panini", "burger", "pizza slice", "bowl"],
    "dinner": ["steak", "pasta", "roast", "casserole", "curry", "stir fry", "grilled fish", "lasagna"],
    "dessert": ["cake", "ice cream", "pie", "cookies", "tiramisu", "cheesecake", "brownie", "pudding"],
    "snack": ["chips", "popcorn", "nuts", "fruit", "cheese", "crackers", "granola bar", "trail mix"],
    "appetizer": ["wings", "nachos", "bruschetta", "spring rolls", "calamari", "cheese sticks", "spinach dip"],
}

BEVERAGE_TERMS = frozenset({"drink", "drinks", "beverage", "beverages"})

_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize_term(text: str) -> str:
    """Dictionary-key normalisation: punctuation becomes space, possessives collapse."""
    value = (text or "").lower().strip()
    value = value.replace("'s ", "s ").replace("s' ", "s ")
    if value.endswith("'s"):
        value = value[:-2] + "s"
    value = _NON_WORD.sub(" ", value)
    return _SPACES.sub(" ", value).strip()


def plural_forms(term: str) -> List[str]:
    forms = [term]
    if not term:
        return forms
    if term.endswith(("s", "x", "z", "sh", "ch")):
        forms.append(term + "es")
    elif term.endswith("y") and len(term) > 1 and term[-2] not in "aeiou":
        forms.append(term[:-1] + "ies")
    else:
        forms.append(term + "s")

    if term.endswith("ies"):
        forms.append(term[:-3] + "y")
    elif term.endswith("es"):
        forms.append(term[:-2])
    elif term.endswith("s") and not term.endswith("ss"):
        forms.append(term[:-1])
    return list(dict.fromkeys(forms))


def compound_variants(term: str) -> List[str]:
    """Spellings of "x and y" with "&", "n" or nothing between the words."""
    variants = [term]
    words = term.split(" ")
    if "and" in words:
        variants.extend([term.replace(" and ", " "), term.replace(" and ", " & "), term.replace(" and ", " n ")])
    if "&" in term:
        variants.extend([term.replace("&", "and"), term.replace("&", "")])
    if "n" in words:
        variants.extend([term.replace(" n ", " and "), term.replace(" n ", " & ")])
    return list(dict.fromkeys(variants))


def _build_synonym_index() -> Dict[str, List[str]]:
    index: Dict[str, List[str]] = {}
    for key, synonyms in FOOD_SYNONYMS.items():
        norm_key = normalize_term(key)
        if not norm_key:
            continue
        merged = index.setdefault(norm_key, [])
        for synonym in synonyms:
            value = normalize_term(synonym)
            if value and value not in merged:
                merged.append(value)
    return index


def _build_reverse_index(index: Dict[str, List[str]]) -> Dict[str, str]:
    reverse: Dict[str, str] = {}
    for key, synonyms in index.items():
        for synonym in synonyms:
            reverse.setdefault(synonym, key)
    # canonical keys always resolve to themselves
    for key in index:
        reverse[key] = key
    return reverse


_SYNONYMS = _build_synonym_index()
_REVERSE_SYNONYMS = _build_reverse_index(_SYNONYMS)


def _flatten(groups: Iterable[List[str]]) -> List[str]:
    seen: Dict[str, None] = {}
    for items in groups:
        for item in items:
            seen.setdefault(normalize_term(item), None)
    return list(seen)


def _build_category_index() -> Dict[str, List[str]]:
    index: Dict[str, List[str]] = {}

    def add(key: str, members: List[str]) -> None:
        norm_key = normalize_term(key)
        existing = index.setdefault(norm_key, [])
        for member in members:
            if member not in existing:
                existing.append(member)

    for category, subcategories in FOOD_CATEGORIES.items():
        add(category, _flatten(subcategories.values()))
        for subcategory, items in subcategories.items():
            add(subcategory, _flatten([items]))
    for meal, items in MEAL_TIMES.items():
        add(meal, _flatten([items]))
    for cuisine, items in CUISINE_FAMILIES.items():
        add(cuisine, _flatten([items]))
    add("drinks", index[normalize_term("beverages")])
    add("drink", index[normalize_term("beverages")])
    add("beverage", index[normalize_term("beverages")])
    return index


_CATEGORY_MEMBERS = _build_category_index()


def synonyms_of(term: str) -> List[str]:
    return list(_SYNONYMS.get(normalize_term(term), []))


def canonical_term(term: str) -> str:
    normalized = normalize_term(term)
    return _REVERSE_SYNONYMS.get(normalized, normalized)


def related_terms(term: str) -> Set[str]:
    """The term, its plural/singular variants and its synonym family."""
    normalized = normalize_term(term)
    if not normalized:
        return set()
    related: Set[str] = {normalized}
    related.update(plural_forms(normalized))
    related.update(normalize_term(v) for v in compound_variants(normalized))
    related.update(_SYNONYMS.get(normalized, []))

    main_term = canonical_term(normalized)
    if main_term != normalized:
        related.add(main_term)
        related.update(_SYNONYMS.get(main_term, []))
    related.discard("")
    return related


def is_category_term(term: str) -> bool:
    normalized = normalize_term(term)
    if normalized in BEVERAGE_TERMS:
        return True
    return any(form in _CATEGORY_MEMBERS for form in plural_forms(normalized))


def category_terms(category: str) -> Set[str]:
    """All members of a category, subcategory, cuisine or meal time (nested groups flattened).

    A term that is not a category expands to itself and its plural forms.
    """
    normalized = normalize_term(category)
    if not normalized:
        return set()
    for form in plural_forms(normalized):
        if form in _CATEGORY_MEMBERS:
            return set(_CATEGORY_MEMBERS[form])
    return set(plural_forms(normalized))
