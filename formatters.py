def _separadores_br(s: str) -> str:
    # troca separadores estilo US -> BR
    return s.replace(",", "X").replace(".", ",").replace("X", ".")


def formatar_reais(valor: float, casas: int = 2) -> str:
    try:
        return f"R$ {_separadores_br(f'{float(valor):,.{casas}f}')}"
    except (TypeError, ValueError):
        return f"R$ {valor}"


def formatar_reais_sinal(valor: float) -> str:
    """Ex.: +R$ 39.750 / -R$ 12.000 (sem centavos)."""
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return f"R$ {valor}"
    sinal = "+" if numero > 0 else "-" if numero < 0 else ""
    return f"{sinal}{formatar_reais(abs(numero), casas=0)}"


def formatar_percentual(valor: float, casas: int = 2, ja_percentual: bool = False) -> str:
    """Formata percentual em pt-BR (ex.: 11,37%)."""
    try:
        numero = float(valor)
        if not ja_percentual:
            numero *= 100.0
        return f"{_separadores_br(f'{numero:,.{casas}f}')}%"
    except (TypeError, ValueError):
        return f"{valor}%"


def formatar_pp(valor: float, casas: int = 2) -> str:
    """Pontos percentuais com sinal explicito (ex.: +1,25 p.p.)."""
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return f"{valor} p.p."
    sinal = "+" if numero > 0 else ""
    return f"{sinal}{_separadores_br(f'{numero:,.{casas}f}')} p.p."
