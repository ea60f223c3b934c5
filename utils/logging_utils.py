
def mask_value(value: str) -> str:
    if not isinstance(value, str):
        return value
    if "@" in value:  # email
        name, _, domain = value.partition("@")
        return (name[:2] + "***@" + domain) if name else "***@" + domain
    if len(value) > 8:  # account numbers, tax ids
        return "****" + value[-4:]
    return "***"
