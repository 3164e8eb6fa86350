import re


def max_existing_sequence(queryset, field: str, prefix: str) -> int:
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    max_seq = 0
    values = (
        queryset.filter(**{f"{field}__startswith": prefix})
        .values_list(field, flat=True)
        .iterator()
    )
    for value in values:
        match = pattern.match(str(value))
        if not match:
            continue
        max_seq = max(max_seq, int(match.group(1)))
    return max_seq


def next_document_number(queryset, field: str, prefix: str, padding: int = 3) -> str:
    """
    Numéro suivant pour un document (bon de commande, transfert, commande).
    Doit être appelé sous verrou (select_for_update sur le tenant) pour éviter
    deux numéros identiques ; la contrainte d'unicité reste le dernier garde-fou.
    """
    seq = max_existing_sequence(queryset, field, prefix) + 1
    return f"{prefix}{seq:0{padding}d}"
