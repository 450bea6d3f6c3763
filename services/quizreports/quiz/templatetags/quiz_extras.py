from django import template

register = template.Library()


@register.filter
def get_item(d: dict, key):
    if not d:
        return None
    try:
        return d.get(key)
    except AttributeError:
        return None


@register.filter
def sort_arrow(direction: str) -> str:
    if direction == "asc":
        return "▲"
    if direction == "desc":
        return "▼"
    return ""
