import os
from datetime import datetime

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

FONTE = "Helvetica"
FONTE_TITULO = "Helvetica-Bold"
TAMANHO_FONTE = 9


def salvar_relatorio_pdf(conteudo: str, nome_base: str = "simulacao", pasta: str = "outputs_pdfs") -> str:
    os.makedirs(pasta, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    nome = f"{nome_base}_{timestamp}.pdf"
    caminho = os.path.join(pasta, nome)

    c = canvas.Canvas(caminho, pagesize=A4)
    c.setTitle(nome_base)
    width, height = A4

    margem_x = 40
    largura_util = width - 2 * margem_x
    y = height - 50
    linha_altura = 13

    def nova_pagina_se_preciso(y_pos: float) -> float:
        if y_pos < 60:
            c.showPage()
            return height - 50
        return y_pos

    for raw_line in conteudo.splitlines():
        line = raw_line.rstrip()
        if line == "":
            y = nova_pagina_se_preciso(y - linha_altura)
            continue

        # Titulos de secao em negrito.
        fonte = FONTE_TITULO if line.startswith("===") else FONTE
        for chunk in simpleSplit(line, fonte, TAMANHO_FONTE, largura_util) or [""]:
            c.setFont(fonte, TAMANHO_FONTE)
            c.drawString(margem_x, y, chunk)
            y = nova_pagina_se_preciso(y - linha_altura)

    c.save()
    return caminho
