"""
Mise en forme Markdown des résultats d'outils (textes en portugais, langue du
catalogue d'exercices).
"""
from typing import Dict, List

from ...core.models import Exercicio


def format_group_results(grupo_muscular: str, exercicios: List[Exercicio]) -> str:
    if not exercicios:
        return f"Nenhum exercício encontrado para o grupo muscular: {grupo_muscular}"

    resultado = "\n".join(
        f"**{ex.nome}**\n"
        f"- Séries: {ex.series}\n"
        f"- Repetições: {ex.repeticoes}\n"
        f"- Intervalo: {ex.intervalo_segundos}s\n"
        f"- Observações: {ex.observacoes}\n"
        for ex in exercicios
    )
    return f"Encontrados {len(exercicios)} exercícios para {grupo_muscular}:\n\n{resultado}"


def format_groups(grupos: List[str]) -> str:
    lista = "\n".join(f"- {grupo}" for grupo in grupos)
    return f"Grupos musculares disponíveis:\n\n{lista}"


def format_name_results(nome: str, exercicios: List[Exercicio]) -> str:
    if not exercicios:
        return f"Nenhum exercício encontrado com o nome: {nome}"

    resultado = "\n".join(
        f"**ID {ex.id}: {ex.nome}**\n"
        f"- Grupo: {ex.grupo_muscular}\n"
        f"- Séries: {ex.series} x {ex.repeticoes} repetições\n"
        f"- Intervalo: {ex.intervalo_segundos}s\n"
        f"- Observações: {ex.observacoes}\n"
        for ex in exercicios
    )
    return f"Encontrados {len(exercicios)} exercício(s):\n\n{resultado}"


def format_all(exercicios: List[Exercicio]) -> str:
    # Regroupement en conservant l'ordre SQL (groupe, nom)
    por_grupo: Dict[str, List[Exercicio]] = {}
    for ex in exercicios:
        por_grupo.setdefault(ex.grupo_muscular, []).append(ex)

    resultado = "\n\n".join(
        f"### {grupo}\n" + "\n".join(f"- {ex.nome} ({ex.series}x{ex.repeticoes})" for ex in exs)
        for grupo, exs in por_grupo.items()
    )
    return f"Total de {len(exercicios)} exercícios cadastrados:\n\n{resultado}"


def format_details(exercicio_id: int, exercicio: Exercicio = None) -> str:
    if exercicio is None:
        return f"Exercício com ID {exercicio_id} não encontrado."

    return (
        f"# {exercicio.nome}\n\n"
        f"**Grupo Muscular:** {exercicio.grupo_muscular}\n"
        f"**Séries:** {exercicio.series}\n"
        f"**Repetições:** {exercicio.repeticoes}\n"
        f"**Intervalo:** {exercicio.intervalo_segundos} segundos\n"
        f"**Observações:** {exercicio.observacoes}"
    )
