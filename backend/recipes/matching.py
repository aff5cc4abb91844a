"""
Ingredient name / unit normalization and fuzzy matching of recipe
ingredients against store inventory.
"""
import logging
import re
from decimal import Decimal

logger = logging.getLogger('backend.recipes')

UNIT_ALIASES = {
    'pieces': 'pieces', 'piece': 'pieces', 'pcs': 'pieces', 'pc': 'pieces',
    'serving': 'serving', 'servings': 'serving',
    'portion': 'portion', 'portions': 'portion',
    'scoop': 'scoop', 'scoops': 'scoop',
    'box': 'box', 'boxes': 'box',
    'pack': 'pack', 'packs': 'pack',
    'kg': 'kg', 'kilogram': 'kg', 'kilograms': 'kg',
    'g': 'g', 'gram': 'g', 'grams': 'g',
    'l': 'liters', 'liter': 'liters', 'liters': 'liters',
    'ml': 'ml', 'milliliter': 'ml', 'milliliters': 'ml',
}

WEIGHT_UNITS = {'kg': Decimal('1000'), 'g': Decimal('1')}
VOLUME_UNITS = {'liters': Decimal('1000'), 'ml': Decimal('1')}
COUNT_UNITS = {'pieces', 'serving', 'portion', 'scoop'}

SIZE_PREFIX_RE = re.compile(r'^(regular|mini|small|large|big)\s+', re.IGNORECASE)

PACK_PATTERNS = [
    re.compile(r'packs?\s+of\s+(\d+)', re.IGNORECASE),
    re.compile(r'(\d+)pcs', re.IGNORECASE),
    re.compile(r'(\d+)\s+piping\s+bag', re.IGNORECASE),
    re.compile(r'(\d+)\s+pieces', re.IGNORECASE),
    re.compile(r'(\d+)pc', re.IGNORECASE),
]

MATCH_THRESHOLD = 0.6


def normalize_unit_name(unit):
    normalized = (unit or '').strip().lower()
    return UNIT_ALIASES.get(normalized, normalized)


def normalize_ingredient_name(name):
    """Lowercase, drop size prefixes (regular/mini/small/large/big), collapse whitespace"""
    name = (name or '').strip().lower()
    name = SIZE_PREFIX_RE.sub('', name)
    return re.sub(r'\s+', ' ', name).strip()


def extract_pack_quantity(description):
    """'pack of 12' -> 12, '20 piping bag' -> 20, '5pc' -> 5; defaults to 1"""
    for pattern in PACK_PATTERNS:
        match = pattern.search(description or '')
        if match:
            return int(match.group(1))
    return 1


def units_compatible(unit_a, unit_b):
    a, b = normalize_unit_name(unit_a), normalize_unit_name(unit_b)
    if a == b:
        return True
    for group in (WEIGHT_UNITS, VOLUME_UNITS, COUNT_UNITS):
        if a in group and b in group:
            return True
    return False


def unit_conversion_factor(from_unit, to_unit):
    """
    Factor that turns a quantity in from_unit into to_unit
    (1 kg -> g is 1000). None when the units cannot be converted.
    """
    a, b = normalize_unit_name(from_unit), normalize_unit_name(to_unit)
    if a == b:
        return Decimal('1')
    for group in (WEIGHT_UNITS, VOLUME_UNITS):
        if a in group and b in group:
            return group[a] / group[b]
    return None


def levenshtein_distance(a, b):
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                current[j - 1] + 1,
                previous[j] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


def similarity(a, b):
    """1 - distance / max length, case-insensitive; two empty strings are identical"""
    a, b = (a or '').lower(), (b or '').lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def score_candidate(ingredient_name, ingredient_unit, item_name, item_unit):
    normalized_ingredient = normalize_ingredient_name(ingredient_name)
    normalized_item = normalize_ingredient_name(item_name)
    score = similarity(normalized_ingredient, normalized_item)
    if score > 0.9:
        score += 0.1
    if normalized_ingredient == normalized_item:
        score += 0.2
    if units_compatible(ingredient_unit, item_unit):
        score += 0.1
    return score


def best_stock_match(ingredient_name, ingredient_unit, stock_items):
    """Return (stock_item, score) for the best candidate above the threshold, else (None, best score)"""
    best, best_score = None, 0.0
    for item in stock_items:
        score = score_candidate(ingredient_name, ingredient_unit, item.item, item.unit)
        if score > best_score:
            best, best_score = item, score
    if best_score > MATCH_THRESHOLD:
        return best, best_score
    return None, best_score


def find_ingredient_matches(ingredients, store):
    """
    Match recipe ingredients (dicts or objects with ingredient_name/unit/quantity)
    against a store's active inventory.
    """
    from backend.inventory.models import InventoryStock

    stock_items = list(InventoryStock.objects.filter(store=store, is_active=True))
    results = []
    for ingredient in ingredients:
        if isinstance(ingredient, dict):
            name, unit = ingredient.get('ingredient_name', ''), ingredient.get('unit', '')
        else:
            name, unit = ingredient.ingredient_name, ingredient.unit

        match, score = best_stock_match(name, unit, stock_items)
        result = {
            'ingredient_name': name,
            'unit': unit,
            'matched_item': None,
            'match_score': round(score, 3),
            'unit_match': False,
            'conversion_needed': False,
            'conversion_factor': None,
        }
        if match is not None:
            factor = unit_conversion_factor(unit, match.unit)
            same_unit = normalize_unit_name(unit) == normalize_unit_name(match.unit)
            result.update({
                'matched_item': {'id': match.id, 'item': match.item, 'unit': match.unit},
                'unit_match': same_unit,
                'conversion_needed': not same_unit,
                'conversion_factor': str(factor) if factor is not None else None,
            })
        else:
            logger.debug(f"No inventory match for '{name}' in store {store.id} (best score {score:.2f})")
        results.append(result)
    return results
