def first_name(full_name: str) -> str:
    parts = full_name.split()
    return parts[0] if len(parts) > 0 else full_name


def pluralize(count: int, noun: str, plural: str | None = None) -> str:
    if count == 1:
        return f"{count} {noun}"
    return f"{count} {plural if plural is not None else noun + 's'}"
