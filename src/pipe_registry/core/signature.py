from pipe_registry.models import AbiFunction


def build_signature(entry: AbiFunction) -> str | None:
    """Return the canonical ``name(type1,type2)`` signature of an ABI entry.

    Constructors, fallbacks and other unnamed entries have no signature. The
    format matches the method keys solc writes into devdoc/userdoc.
    """
    if not entry.name:
        return None
    types = ",".join(arg.type for arg in entry.inputs)
    return f"{entry.name}({types})"
