"""Streamlit front-end for the tuition billing checker."""
from __future__ import annotations

import atexit
import logging

import pandas as pd
import streamlit as st

from tuition_checker.application.dto import AnalysisStatus, DashboardState, DashboardView
from tuition_checker.application.live import LiveUnits
from tuition_checker.application.tasks import TaskRunner
from tuition_checker.application.use_cases import (
    BuildDashboardViewUseCase,
    DeleteUnitUseCase,
    ResolveStudentUseCase,
    SummarizeRecordsUseCase,
    UploadSpreadsheetUseCase,
)
from tuition_checker.config import SETTINGS, configure_logging
from tuition_checker.domain.models import ErrorKind
from tuition_checker.domain.services import ResolutionReconciler
from tuition_checker.infrastructure.ai.gemini import make_summarizer
from tuition_checker.infrastructure.repositories.spreadsheet_repository import SpreadsheetBillingRepository
from tuition_checker.infrastructure.storage.factory import open_store
from tuition_checker.presentation.report import (
    annotated_to_rows,
    difference_distribution,
    format_brl,
    render_csv,
    render_html,
)

configure_logging(SETTINGS.log_level)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Conferência de Mensalidades", layout="wide")
st.title("Conferência de Mensalidades")

RESOLUTION_NOTES = {"Data Correta": ErrorKind.DATE, "Valor Correto": ErrorKind.VALUE}


@st.cache_resource
def get_services():
    store = open_store(SETTINGS)
    live = LiveUnits(store)
    live.start()
    runner = TaskRunner()

    def shutdown() -> None:
        live.stop()
        runner.shutdown(wait=False)
        store.close()

    atexit.register(shutdown)
    return store, live, runner


def render_summary(view: DashboardView, state: DashboardState) -> None:
    summary = view.summary
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Alunos Exibidos", len(view.rows))
    col2.metric("Saldo Total Bruto", format_brl(summary.total_billed))
    col3.metric("Valor Líquido", format_brl(summary.total_min))
    col4.metric("Diferença Média", format_brl(summary.avg_diff), f"{summary.avg_percent:.1f}%")

    if summary.duplicates:
        with st.expander(f"Nomes duplicados ({summary.duplicate_count})"):
            st.dataframe(pd.DataFrame([{"Nome": d.name, "Ocorrências": d.count} for d in summary.duplicates]))

    if state.error_filter_active:
        err1, err2, err3 = st.columns(3)
        err1.metric("Vencimento Inválido", view.error_stats.invalid_due_date_count)
        err1.caption("Fora dos dias 5, 10, 15 ou próximo dia útil")
        err2.metric("Valor Possivelmente Errado", view.error_stats.low_value_count)
        err2.caption(f"Cobranças abaixo de {format_brl(SETTINGS.value_threshold)}")
        err3.metric("Erros Solucionados", view.error_stats.resolved_count)
        with err3.expander("Ver resolvidos"):
            st.dataframe(
                pd.DataFrame(
                    [
                        {"Aluno": e.name, "Unidade": e.unit_id, "Tipo": e.kind.value, "Nota": e.note, "Em": e.resolved_at}
                        for e in view.resolved
                    ]
                )
            )


def render_charts(view: DashboardView) -> None:
    chart_col, pie_col = st.columns([2, 1])
    with chart_col:
        st.subheader("Distribuição da diferença (%)")
        st.bar_chart(pd.DataFrame(difference_distribution(view.records)).set_index("range"))
    with pie_col:
        st.subheader("Composição")
        summary = view.summary
        st.dataframe(
            pd.DataFrame(
                [
                    {"Parcela": "Valor Líquido", "Valor": format_brl(summary.total_min)},
                    {"Parcela": "Descontos (Bolsas)", "Valor": format_brl(summary.total_billed - summary.total_min)},
                ]
            ),
            hide_index=True,
        )


def render_resolve_form(view: DashboardView, store, runner: TaskRunner) -> None:
    pending = [row for row in view.rows if row.status.has_unresolved]
    if not pending:
        return
    with st.expander("Resolver pendência"):
        labels = [f"{row.record.student_name} ({row.record.unit_id})" for row in pending]
        choice = st.selectbox("Aluno", range(len(pending)), format_func=lambda i: labels[i], key="resolve_student")
        note = st.radio("Nota", list(RESOLUTION_NOTES), key="resolve_note", horizontal=True)
        if st.button("Confirmar", key="resolve_btn"):
            record = pending[choice].record
            future = runner.submit(
                ResolveStudentUseCase(store).execute,
                record.unit_id,
                record.student_name,
                note,
                RESOLUTION_NOTES[note],
            )
            outcome = future.result()
            if outcome.ok:
                st.success(f"Pendência de {record.student_name} resolvida")
                st.rerun()
            else:
                st.error("Não foi possível salvar a resolução. Tente novamente.")


store, live, runner = get_services()

if "dashboard_state" not in st.session_state:
    st.session_state["dashboard_state"] = DashboardState()
if "ai_insight" not in st.session_state:
    st.session_state["ai_insight"] = None

state: DashboardState = st.session_state["dashboard_state"]
units = live.units
if live.error is not None:
    state.mark_error()
elif live.version != st.session_state.get("snapshot_version"):
    st.session_state["snapshot_version"] = live.version
    if live.version:
        state.apply_snapshot(units)

with st.sidebar:
    st.header("Unidades")
    names = {unit.id: unit.name for unit in units}
    state.selected_unit_ids = st.multiselect(
        "Unidades selecionadas",
        options=list(names),
        default=[uid for uid in state.selected_unit_ids if uid in names],
        format_func=lambda uid: names[uid],
    )
    if units and st.button("Selecionar todas / nenhuma"):
        state.toggle_all_units(units)
        st.rerun()

    st.header("Enviar planilha")
    unit_name = st.text_input("Nome da unidade")
    upload = st.file_uploader("Planilha", type=["xlsx", "xls", "csv"])
    if st.button("Enviar", disabled=not (unit_name.strip() and upload)):
        repository = SpreadsheetBillingRepository(upload.read(), filename=upload.name)
        with st.spinner("Processando..."):
            outcome = runner.submit(UploadSpreadsheetUseCase(store).execute, unit_name, repository).result()
        if outcome.ok:
            state.select_only(outcome.value.unit_id)
            st.success(f"{outcome.value.record_count} lançamentos enviados")
            st.rerun()
        else:
            st.error("Erro ao processar e enviar o arquivo.")

    if state.selected_unit_ids and st.button("Excluir unidades selecionadas"):
        for unit_id in list(state.selected_unit_ids):
            outcome = runner.submit(DeleteUnitUseCase(store).execute, unit_id).result()
            if not outcome.ok:
                st.error(f"Não foi possível excluir {unit_id}.")
        st.rerun()

if state.status is AnalysisStatus.ERROR:
    st.error("Falha na conexão com a base de dados.")
elif state.status is AnalysisStatus.CONNECTING:
    st.info("Conectando...")
elif state.status is AnalysisStatus.NO_DATA:
    st.info("Nenhuma unidade cadastrada. Envie uma planilha para começar.")
elif not state.selected_unit_ids:
    st.info("Selecione ao menos uma unidade.")
else:
    filter_col, date_col, value_col = st.columns([4, 1, 1])
    with filter_col:
        state.search_term = st.text_input("Filtrar lançamentos...", value=state.search_term)
        active = st.toggle("Possíveis Erros", value=state.error_filter_active)
        if active != state.error_filter_active:
            state.toggle_error_filter()
    if state.error_filter_active:
        for col, kind, label in ((date_col, ErrorKind.DATE, "Vencimento"), (value_col, ErrorKind.VALUE, "Valor")):
            with col:
                marker = "✓" if kind in state.error_kinds else "✗"
                if st.button(f"{marker} {label}", key=f"kind_{kind.value}"):
                    if state.toggle_error_kind(kind):
                        st.rerun()
                    st.warning("Mantenha ao menos um filtro ativo.")

    reconciler = ResolutionReconciler(SETTINGS.base_due_days, SETTINGS.value_threshold)
    view = BuildDashboardViewUseCase(reconciler).execute(units, state)

    if view.is_empty:
        st.info("As unidades selecionadas não possuem lançamentos.")
    else:
        render_summary(view, state)
        render_charts(view)

        st.subheader("Lançamentos")
        st.dataframe(pd.DataFrame(annotated_to_rows(view.rows[: SETTINGS.table_limit])), hide_index=True)
        st.download_button("Baixar CSV", data=render_csv(view.rows), file_name="lancamentos.csv", mime="text/csv")
        st.download_button(
            "Baixar HTML",
            data=render_html(view.rows).encode("utf-8"),
            file_name="lancamentos.html",
            mime="text/html",
        )
        render_resolve_form(view, store, runner)

        st.subheader("Análise por IA")
        if st.button("Gerar análise"):
            summarizer = make_summarizer(
                SETTINGS.gemini_api_key,
                model=SETTINGS.gemini_model,
                timeout=SETTINGS.ai_timeout,
                sample_size=SETTINGS.ai_sample_size,
            )
            with st.spinner("Consultando a IA..."):
                outcome = runner.submit(SummarizeRecordsUseCase(summarizer).execute, view.records).result()
            if outcome.ok:
                st.session_state["ai_insight"] = outcome.value
            else:
                st.error("Erro ao consultar a IA.")
        insight = st.session_state.get("ai_insight")
        if insight is not None:
            st.write(insight.summary)
            st.markdown("**Anomalias**")
            for item in insight.anomalies:
                st.markdown(f"- {item}")
            st.markdown("**Recomendações**")
            for item in insight.recommendations:
                st.markdown(f"- {item}")
            st.caption(insight.financial_trend)
