from __future__ import annotations

import argparse
import hashlib
import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import ruleset_loader
from app_config import configurar_logging, resolve_demo_mode, resolve_output_targets, resolve_ruleset_id
from dominio import FAIXAS_FATURAMENTO, SETORES, UFS
from reference_data import montar_tabelas
from regime_utils import REGIMES

logger = logging.getLogger(__name__)

ANO_INICIO_TRANSICAO = 2026
ANO_FIM_TRANSICAO = 2033

METADATA_CHAVES_OBRIGATORIAS = ("ruleset_id", "ultima_atualizacao", "fontes_oficiais")


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: str  # PASS | FAIL
    expected: Any = None
    actual: Any = None
    details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "expected": self.expected,
            "actual": self.actual,
            "details": self.details,
        }


def _pass(name: str, details: str = "", expected: Any = None, actual: Any = None) -> CheckResult:
    return CheckResult(name=name, status="PASS", details=details, expected=expected, actual=actual)


def _fail(name: str, details: str = "", expected: Any = None, actual: Any = None) -> CheckResult:
    return CheckResult(name=name, status="FAIL", details=details, expected=expected, actual=actual)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_number(value: Any) -> bool:
    return _is_number(value) and value > 0


def _hash_json_payload(payload: Dict[str, Any]) -> str:
    canonical = json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _hash_composite(items: Dict[str, str]) -> str:
    canonical = json.dumps(items, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _range_invalido(row: Any) -> bool:
    if not isinstance(row, dict):
        return True
    minimo, maximo = row.get("min"), row.get("max")
    return not (_is_number(minimo) and _is_number(maximo) and 0 <= minimo <= maximo)


def validate_metadata(payload: Dict[str, Any]) -> List[CheckResult]:
    faltantes = [k for k in METADATA_CHAVES_OBRIGATORIAS if not payload.get(k)]
    if faltantes:
        return [_fail("Metadata: chaves obrigatorias", expected=list(METADATA_CHAVES_OBRIGATORIAS), actual=faltantes)]
    return [_pass("Metadata: chaves obrigatorias")]


def validate_icms_uf(payload: Dict[str, Any]) -> List[CheckResult]:
    checks: List[CheckResult] = []
    ufs = payload.get("ufs")
    if not isinstance(ufs, dict):
        return [_fail("ICMS: tabela de UFs", expected="objeto", actual=type(ufs).__name__)]

    faltantes = sorted(set(UFS) - set(ufs))
    extras = sorted(set(ufs) - set(UFS))
    if faltantes or extras:
        checks.append(_fail("ICMS: 27 UFs", expected=len(UFS), actual=len(ufs), details=f"faltantes={faltantes} extras={extras}"))
    else:
        checks.append(_pass("ICMS: 27 UFs", expected=len(UFS), actual=len(ufs)))

    invalidas = [
        uf
        for uf, row in sorted(ufs.items())
        if not isinstance(row, dict)
        or not _is_positive_number(row.get("aliquota"))
        or not _is_positive_number(row.get("peso_pib"))
    ]
    if invalidas:
        checks.append(_fail("ICMS: aliquota e peso positivos", actual=invalidas))
    else:
        checks.append(_pass("ICMS: aliquota e peso positivos"))
    return checks


def validate_setores(payload: Dict[str, Any]) -> List[CheckResult]:
    checks: List[CheckResult] = []
    setores = payload.get("setores")
    if not isinstance(setores, dict):
        return [_fail("Setores: tabela", expected="objeto", actual=type(setores).__name__)]

    faltantes = [s for s in SETORES if s not in setores]
    if faltantes:
        checks.append(_fail("Setores: cobertura", expected=list(SETORES), actual=faltantes))
    else:
        checks.append(_pass("Setores: cobertura"))

    ranges = [s for s, row in setores.items() if _range_invalido((row or {}).get("carga_nova"))]
    if ranges:
        checks.append(_fail("Setores: carga_nova min <= max", actual=ranges))
    else:
        checks.append(_pass("Setores: carga_nova min <= max"))

    sem_margem = [
        s
        for s, row in setores.items()
        if isinstance(row, dict)
        and row.get("tributado_icms")
        and not (_is_number(row.get("margem_bruta")) and 0 < row["margem_bruta"] < 1)
    ]
    if sem_margem:
        checks.append(_fail("Setores: margem bruta dos setores com ICMS", actual=sem_margem))
    else:
        checks.append(_pass("Setores: margem bruta dos setores com ICMS"))
    return checks


def validate_regime_setor(payload: Dict[str, Any], nome: str, efetividade: bool = False) -> List[CheckResult]:
    regimes = payload.get("regimes")
    if not isinstance(regimes, dict):
        return [_fail(f"{nome}: tabela", expected="objeto", actual=type(regimes).__name__)]

    faltantes = [f"{r}/{s}" for r in REGIMES for s in SETORES if s not in (regimes.get(r) or {})]
    checks = [
        _fail(f"{nome}: cobertura regime x setor", actual=faltantes)
        if faltantes
        else _pass(f"{nome}: cobertura regime x setor", actual=len(REGIMES) * len(SETORES))
    ]

    invalidas: List[str] = []
    for regime, por_setor in regimes.items():
        for setor, row in (por_setor or {}).items():
            chave = f"{regime}/{setor}"
            if efetividade:
                valores = [(row or {}).get(k) for k in ("min", "medio", "max")]
                if not all(_is_number(v) for v in valores) or not (0 < valores[0] <= valores[1] <= valores[2] <= 1):
                    invalidas.append(chave)
            elif _range_invalido(row):
                invalidas.append(chave)

    regra = "0 < min <= medio <= max <= 1" if efetividade else "min <= max"
    if invalidas:
        checks.append(_fail(f"{nome}: {regra}", actual=invalidas))
    else:
        checks.append(_pass(f"{nome}: {regra}"))
    return checks


def validate_ajuste_regime(payload: Dict[str, Any]) -> List[CheckResult]:
    regimes = payload.get("regimes") if isinstance(payload.get("regimes"), dict) else {}
    invalidos = [r for r in REGIMES if not _is_positive_number((regimes.get(r) or {}).get("fator"))]
    if invalidos:
        return [_fail("Ajuste de regime: 4 regimes com fator positivo", expected=list(REGIMES), actual=invalidos)]
    return [_pass("Ajuste de regime: 4 regimes com fator positivo")]


def validate_faturamento(payload: Dict[str, Any]) -> List[CheckResult]:
    faixas = payload.get("faixas") if isinstance(payload.get("faixas"), dict) else {}
    invalidas = [f for f in FAIXAS_FATURAMENTO if not _is_positive_number((faixas.get(f) or {}).get("valor_medio"))]
    if invalidas:
        return [_fail("Faturamento: valor medio por faixa", actual=invalidas)]
    return [_pass("Faturamento: valor medio por faixa")]


def validate_transicao(payload: Dict[str, Any]) -> List[CheckResult]:
    checks: List[CheckResult] = []
    marcos = payload.get("marcos")
    if not isinstance(marcos, list) or not marcos:
        return [_fail("Transicao: marcos", expected="lista", actual=type(marcos).__name__)]

    anos = [m.get("ano") for m in marcos if isinstance(m, dict)]
    esperado = list(range(ANO_INICIO_TRANSICAO, ANO_FIM_TRANSICAO + 1))
    if anos != esperado:
        checks.append(_fail("Transicao: anos contiguos", expected=esperado, actual=anos))
    else:
        checks.append(_pass("Transicao: anos contiguos", expected=esperado, actual=anos))

    ibs = [m.get("ibs") for m in marcos if isinstance(m, dict)]
    if not all(_is_number(v) for v in ibs) or any(b < a for a, b in zip(ibs, ibs[1:])):
        checks.append(_fail("Transicao: IBS nao decrescente", actual=ibs))
    else:
        checks.append(_pass("Transicao: IBS nao decrescente"))

    plena = payload.get("aliquota_plena") if isinstance(payload.get("aliquota_plena"), dict) else {}
    ultimo = marcos[-1] if isinstance(marcos[-1], dict) else {}
    if ultimo.get("ibs") != plena.get("ibs") or ultimo.get("cbs") != plena.get("cbs"):
        checks.append(
            _fail(
                "Transicao: ultimo ano na aliquota plena",
                expected=plena,
                actual={"ibs": ultimo.get("ibs"), "cbs": ultimo.get("cbs")},
            )
        )
    else:
        checks.append(_pass("Transicao: ultimo ano na aliquota plena"))
    return checks


def validate_incentivos(payload: Dict[str, Any]) -> List[CheckResult]:
    ufs = payload.get("ufs") if isinstance(payload.get("ufs"), dict) else {}
    desconhecidas = sorted(uf for uf in ufs if uf not in UFS)
    if desconhecidas:
        return [_fail("Incentivos: UFs validas", actual=desconhecidas)]
    return [_pass("Incentivos: UFs validas", actual=len(ufs))]


def validate_thresholds(payload: Dict[str, Any]) -> List[CheckResult]:
    checks: List[CheckResult] = []
    risco = payload.get("risco") if isinstance(payload.get("risco"), dict) else {}
    valores = [risco.get(k) for k in ("medio_pct", "alto_pct", "critico_pct")]
    if all(_is_number(v) for v in valores) and valores[0] < valores[1] < valores[2]:
        checks.append(_pass("Thresholds: risco crescente", actual=valores))
    else:
        checks.append(_fail("Thresholds: risco crescente", expected="medio < alto < critico", actual=valores))

    pressao = payload.get("pressao_formalizacao") if isinstance(payload.get("pressao_formalizacao"), dict) else {}
    gaps = [pressao.get(k) for k in ("moderada_gap", "alta_gap", "muito_alta_gap")]
    if all(_is_number(v) for v in gaps) and 0 < gaps[0] < gaps[1] < gaps[2] < 1:
        checks.append(_pass("Thresholds: pressao de formalizacao crescente", actual=gaps))
    else:
        checks.append(_fail("Thresholds: pressao de formalizacao crescente", expected="0 < moderada < alta < muito_alta < 1", actual=gaps))

    epsilon = (payload.get("icms") or {}).get("neutro_epsilon_pp") if isinstance(payload.get("icms"), dict) else None
    if _is_number(epsilon) and epsilon >= 0:
        checks.append(_pass("Thresholds: faixa neutra de ICMS", actual=epsilon))
    else:
        checks.append(_fail("Thresholds: faixa neutra de ICMS", expected=">= 0", actual=epsilon))
    return checks


def _load_payloads(ruleset_id: str) -> tuple[Dict[str, Dict[str, Any]], List[CheckResult]]:
    payloads: Dict[str, Dict[str, Any]] = {}
    checks: List[CheckResult] = []
    for filename in ruleset_loader.RULESET_FILES:
        try:
            payloads[filename] = ruleset_loader.load_file(ruleset_id, filename)
        except (FileNotFoundError, ValueError) as exc:
            checks.append(_fail(f"Arquivo presente: {filename}", details=str(exc)))
        else:
            checks.append(_pass(f"Arquivo presente: {filename}"))
    return payloads, checks


def audit_ruleset(ruleset_id: str = ruleset_loader.DEFAULT_RULESET_ID) -> Dict[str, Any]:
    payloads, checks = _load_payloads(ruleset_id)

    validadores = (
        (ruleset_loader.ARQUIVO_METADATA, validate_metadata),
        (ruleset_loader.ARQUIVO_ICMS_UF, validate_icms_uf),
        (ruleset_loader.ARQUIVO_SETORES, validate_setores),
        (ruleset_loader.ARQUIVO_CARGA_ATUAL, lambda p: validate_regime_setor(p, "Carga atual")),
        (ruleset_loader.ARQUIVO_EFETIVIDADE, lambda p: validate_regime_setor(p, "Efetividade", efetividade=True)),
        (ruleset_loader.ARQUIVO_AJUSTE_REGIME, validate_ajuste_regime),
        (ruleset_loader.ARQUIVO_FATURAMENTO, validate_faturamento),
        (ruleset_loader.ARQUIVO_TRANSICAO, validate_transicao),
        (ruleset_loader.ARQUIVO_INCENTIVOS_UF, validate_incentivos),
        (ruleset_loader.ARQUIVO_THRESHOLDS, validate_thresholds),
    )
    for filename, validador in validadores:
        if filename in payloads:
            checks.extend(validador(payloads[filename]))

    referencia_icms: Optional[float] = None
    if len(payloads) == len(ruleset_loader.RULESET_FILES):
        try:
            tabelas = montar_tabelas(ruleset_id, payloads)
        except ValueError as exc:
            checks.append(_fail("Montagem das tabelas de referencia", details=str(exc)))
        else:
            referencia_icms = tabelas.icms_referencia
            checks.append(_pass("Montagem das tabelas de referencia", actual=f"referencia ICMS={referencia_icms:.4f}"))

    file_hashes = {filename: _hash_json_payload(payload) for filename, payload in payloads.items()}
    all_pass = all(c.status == "PASS" for c in checks)
    metadata = payloads.get(ruleset_loader.ARQUIVO_METADATA, {})

    logger.info("auditoria %s: %s (%d checks)", ruleset_id, "PASS" if all_pass else "FAIL", len(checks))
    return {
        "ruleset_id": ruleset_id,
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "metadata": {
            "ruleset_id": metadata.get("ruleset_id"),
            "vigencia_inicio": metadata.get("vigencia_inicio"),
            "vigencia_fim": metadata.get("vigencia_fim"),
            "ultima_atualizacao": metadata.get("ultima_atualizacao"),
            "descricao": metadata.get("descricao"),
        },
        "checked_files": list(ruleset_loader.RULESET_FILES),
        "ruleset_file_hashes": file_hashes,
        "ruleset_hash_sha256": _hash_composite(file_hashes),
        "icms_referencia": referencia_icms,
        "overall_status": "PASS" if all_pass else "FAIL",
        "checks": [c.to_dict() for c in checks],
        "differences": [c.to_dict() for c in checks if c.status == "FAIL"],
    }


def get_integrity_summary(ruleset_id: str = ruleset_loader.DEFAULT_RULESET_ID) -> Dict[str, Any]:
    """Resumo curto de integridade do ruleset."""
    result = audit_ruleset(ruleset_id)
    return {
        "status": result.get("overall_status"),
        "ruleset_hash": result.get("ruleset_hash_sha256"),
        "checked_files": result.get("checked_files", []),
        "failure_count": len(result.get("differences", [])),
    }


def render_audit_report_text(result: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append("=== RULESET AUDIT REPORT ===")
    lines.append(f"Ruleset: {result.get('ruleset_id')}")
    lines.append(f"Timestamp: {result.get('timestamp')}")
    lines.append(f"Overall: {result.get('overall_status')}")
    lines.append(f"Ruleset hash (SHA-256): {result.get('ruleset_hash_sha256')}")
    referencia = result.get("icms_referencia")
    lines.append(f"Referencia nacional ICMS: {referencia:.4f}" if isinstance(referencia, float) else "Referencia nacional ICMS: N/D")
    lines.append("")

    meta = result.get("metadata", {})
    lines.append("Metadata:")
    for key in ("ruleset_id", "vigencia_inicio", "vigencia_fim", "ultima_atualizacao", "descricao"):
        lines.append(f"- {key}: {meta.get(key)}")
    lines.append("")

    lines.append("File hashes:")
    for filename in result.get("checked_files", []):
        lines.append(f"- {filename}: {result.get('ruleset_file_hashes', {}).get(filename, '<ausente>')}")

    lines.append("")
    lines.append("Checks:")
    for check in result.get("checks", []):
        lines.append(f"[{check.get('status')}] {check.get('name')}")
        expected = check.get("expected")
        actual = check.get("actual")
        details = check.get("details")
        if expected is not None or actual is not None:
            lines.append(f"  expected={expected} | actual={actual}")
        if details:
            lines.append(f"  details={details}")

    return "\n".join(lines)


def write_audit_report(result: Dict[str, Any], output_dir: str = "outputs") -> str:
    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    name = f"ruleset_audit_{result.get('ruleset_id', 'unknown')}_{timestamp}.txt"
    path = os.path.join(output_dir, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_audit_report_text(result))
    return path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Audita integridade estrutural de um ruleset da reforma tributaria.")
    parser.add_argument("--ruleset-id", default=None)
    parser.add_argument("--output-dir", default=None)
    parser.add_argument("--demo", action="store_true")
    args = parser.parse_args(argv)

    configurar_logging()
    ruleset_id = resolve_ruleset_id(args.ruleset_id)
    output_dir = args.output_dir or resolve_output_targets(resolve_demo_mode(args.demo))["auditoria_pasta"]

    result = audit_ruleset(ruleset_id)
    report_path = write_audit_report(result, output_dir=output_dir)
    print(f"Relatorio de auditoria gerado: {report_path}")
    print(f"Status geral: {result.get('overall_status')}")
    print(f"Ruleset hash: {result.get('ruleset_hash_sha256')}")
    return 0 if result.get("overall_status") == "PASS" else 1


if __name__ == "__main__":
    raise SystemExit(main())
