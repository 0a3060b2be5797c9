"""
UI components for the Agency Rate Desk application.
"""

import base64
import streamlit as st
from datetime import date, datetime
from typing import Any, Dict, Optional
import logging
import pandas as pd

from business_logic.agency_controller import AgencyController
from config.settings import config_manager
from business_logic.work_log_store import MONTHS, compute_period_months, period_label, toggle_overage
from data.parsers import (
    INPUT_MODE_NARRATIVE, INPUT_MODE_SPREADSHEET, INPUT_MODE_TABLE, TABLE_COLUMNS, WorkTableParser
)
from models.data_models import (
    Attachment, BillingModel, Brand, Category, Currency, EstimateResponse,
    HistoryStatus, PendingLogReview, Region, coerce_enum
)

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {'INR': '₹', 'EUR': '€', 'USD': '$'}
HEALTH_BADGES = {'Healthy': '🟢 Healthy', 'Warning': '🟠 Warning', 'Loss': '🔴 Loss'}
YEARS = [2024, 2025, 2026]


def format_money(amount: float, currency: str) -> str:
    return f"{CURRENCY_SYMBOLS.get(currency, '')}{amount:,.0f}"


def show_notification(notification: Optional[Dict[str, Any]]):
    """Render a controller notification."""
    if not notification:
        return

    text = f"**{notification.get('title', 'Error')}**: {notification.get('message', '')}"
    if notification.get('action'):
        text += f"\n\n{notification['action']}"

    if notification.get('type') == 'warning':
        st.warning(text)
    elif notification.get('type') == 'info':
        st.info(text)
    else:
        st.error(text)


def uploaded_file_to_attachment(uploaded) -> Optional[Attachment]:
    """
    Base64-encode a Streamlit upload for the AI mapper.

    Raises:
        ValueError: If the file type is unsupported or the file is too large
    """
    if uploaded is None:
        return None
    if not config_manager.is_supported_upload(uploaded.name):
        raise ValueError(f"Unsupported file type: {uploaded.name}")
    if uploaded.size > config_manager.get_max_upload_bytes():
        raise ValueError(f"{uploaded.name} is larger than the upload limit.")
    return Attachment(
        data=base64.b64encode(uploaded.getvalue()).decode('ascii'),
        mime_type=uploaded.type or 'application/octet-stream',
        name=uploaded.name
    )


def estimate_items_frame(items) -> pd.DataFrame:
    return pd.DataFrame([
        {
            'Service': item.service,
            'Qty': item.quantity,
            'Unit': item.unit,
            'Rate': item.suggested_rate,
            'Total': item.total,
            'Category': item.category.value if item.category else '',
            'Overage': item.is_overage,
            'Justification': item.justification,
        }
        for item in items
    ])


class EstimatorView:
    """
    Scope-to-estimate workflow: price, refine, save to history.
    """

    def __init__(self, controller: AgencyController):
        self.controller = controller

    def render(self):
        st.subheader("🧮 Estimator")

        brands = self.controller.registry.list_brands()
        brand_options = {'new': 'New client'}
        brand_options.update({brand.id: brand.name for brand in brands})

        col1, col2 = st.columns([2, 1])
        with col1:
            scope = st.text_area("Scope of work", key='estimator_scope', height=160,
                                 placeholder="e.g. 12 reels a month, 4 statics, one product shoot")
        with col2:
            brand_id = st.selectbox("Brand", options=list(brand_options.keys()),
                                    format_func=lambda key: brand_options[key], key='estimator_brand')
            region = st.radio("Region", options=list(Region), format_func=lambda r: r.value,
                              key='estimator_region', disabled=brand_id != 'new')
            upload = st.file_uploader("Brief screenshot (optional)", type=['png', 'jpg', 'jpeg', 'webp'],
                                      key='estimator_image')

        selected_brand_id = None if brand_id == 'new' else brand_id
        if st.button("Generate estimate", type='primary', disabled=not scope.strip() and upload is None):
            try:
                image = uploaded_file_to_attachment(upload)
            except ValueError as e:
                st.error(str(e))
                return
            with st.spinner("Mapping scope onto the rate card..."):
                success, estimate, _, notification = self.controller.run_estimate(
                    scope, region, selected_brand_id, image
                )
            if success:
                st.session_state['estimate'] = estimate
                st.session_state.pop('proposed_estimate', None)
            show_notification(notification)

        estimate: Optional[EstimateResponse] = st.session_state.get('estimate')
        if estimate is None:
            return

        proposed: Optional[EstimateResponse] = st.session_state.get('proposed_estimate')
        self._render_estimate(proposed or estimate, is_proposal=proposed is not None)

        if proposed is not None:
            col_apply, col_discard = st.columns(2)
            if col_apply.button("Apply refinement"):
                st.session_state['estimate'] = proposed
                st.session_state.pop('proposed_estimate', None)
                st.rerun()
            if col_discard.button("Discard refinement"):
                st.session_state.pop('proposed_estimate', None)
                st.rerun()

        refinement = st.text_input("Refine", key='estimator_refinement',
                                   placeholder="e.g. drop the shoot, add two motion ads")
        if st.button("Propose refinement"):
            with st.spinner("Refining..."):
                success, revised, _, notification = self.controller.refine_estimate(
                    scope, refinement, proposed or estimate, region, selected_brand_id
                )
            if success:
                st.session_state['proposed_estimate'] = revised
                st.rerun()
            show_notification(notification)

        client_name = None
        if selected_brand_id is None:
            client_name = st.text_input("Client name", key='estimator_client_name')

        if st.button("Save to history"):
            success, _, message, notification = self.controller.save_estimate(
                st.session_state['estimate'], region, selected_brand_id, client_name
            )
            if success:
                st.success(message)
            show_notification(notification)

    def _render_estimate(self, estimate: EstimateResponse, is_proposal: bool = False):
        if is_proposal:
            st.info("Proposed refinement, not yet applied")

        metric_cols = st.columns(3)
        metric_cols[0].metric("Total estimate", format_money(estimate.total_estimate, estimate.currency))
        metric_cols[1].metric("Recommended tier",
                              estimate.recommended_tier.value if estimate.recommended_tier else "—")
        metric_cols[2].metric("Line items", len(estimate.items))

        if estimate.items:
            st.dataframe(estimate_items_frame(estimate.items), use_container_width=True, hide_index=True)

        st.markdown(f"**Strategic advice:** {estimate.strategic_advice}")

        if estimate.mapping_logic:
            with st.expander("Mapping logic"):
                st.dataframe(pd.DataFrame([m.to_dict() for m in estimate.mapping_logic]),
                             use_container_width=True, hide_index=True)
        if estimate.thought_process:
            with st.expander("Thought process"):
                st.write(estimate.thought_process)


class HistoryView:
    """Saved estimates, newest first."""

    def __init__(self, controller: AgencyController):
        self.controller = controller

    def render(self):
        st.subheader("🗂️ Estimate History")

        items = self.controller.history.list_recent()
        if not items:
            st.info("No saved estimates yet.")
            return

        for item in items:
            estimate = item.final_estimate
            saved_at = datetime.fromtimestamp(item.timestamp / 1000).strftime('%d %b %Y %H:%M')
            label = (f"{item.client_name or 'Unnamed Client'} · "
                     f"{format_money(estimate.total_estimate, estimate.currency)} · {item.status.value}")
            with st.expander(label):
                st.caption(f"{saved_at} · {item.region.value}")
                if estimate.raw_input:
                    st.write(estimate.raw_input)
                if estimate.items:
                    st.dataframe(estimate_items_frame(estimate.items), use_container_width=True, hide_index=True)

                col_status, col_delete = st.columns([3, 1])
                statuses = list(HistoryStatus)
                status = col_status.selectbox("Status", statuses, index=statuses.index(item.status),
                                              format_func=lambda s: s.value, key=f"status_{item.id}")
                if status != item.status:
                    _, _, _, notification = self.controller.update_history_status(item.id, status)
                    show_notification(notification)
                if col_delete.button("Delete", key=f"delete_history_{item.id}"):
                    _, _, _, notification = self.controller.delete_history(item.id)
                    show_notification(notification)
                    st.rerun()


class BrandsView:
    """
    Brand cards, brand creation and the work-log flow:
    period selection, table or narrative input, AI review, confirmation.
    """

    def __init__(self, controller: AgencyController):
        self.controller = controller
        self.parser = WorkTableParser()

    def render(self):
        st.subheader("🏷️ Brand Intelligence")

        with st.expander("➕ Add brand"):
            self._render_add_brand()

        brands = self.controller.registry.list_brands()
        columns = st.columns(3)
        for index, brand in enumerate(brands):
            with columns[index % 3]:
                self._render_brand_card(brand)

        logging_for = st.session_state.get('logging_for')
        brand = self.controller.registry.get_brand(logging_for) if logging_for else None
        if brand is not None:
            st.divider()
            self._render_log_form(brand)

    def _render_add_brand(self):
        with st.form("add_brand_form", clear_on_submit=True):
            name = st.text_input("Brand name *", placeholder="e.g. Traveleva")
            col1, col2 = st.columns(2)
            billing_model = col1.selectbox("Billing model", list(BillingModel), format_func=lambda m: m.value)
            fee = col2.number_input("Monthly retainer fee", min_value=0.0, step=1000.0)
            scope = st.text_input("Retainer scope", placeholder="e.g. 15 Reels, 4 Ads")
            col3, col4 = st.columns(2)
            currencies = list(Currency)
            default_currency = coerce_enum(Currency, config_manager.get_default_currency(), Currency.INR)
            currency = col3.selectbox("Currency", currencies, index=currencies.index(default_currency),
                                      format_func=lambda c: c.value)
            region = col4.selectbox("Region", list(Region), format_func=lambda r: r.value)
            submitted = st.form_submit_button("Add brand")

        if submitted:
            success, brand, message, notification = self.controller.create_brand(
                name,
                billing_model,
                None if billing_model == BillingModel.PROJECT else fee,
                scope,
                currency,
                region
            )
            if success:
                st.success(message)
            show_notification(notification)

    def _render_brand_card(self, brand: Brand):
        logs = self.controller.work_logs.logs_for_brand(brand.id)
        last_log = logs[-1] if logs else None

        with st.container(border=True):
            st.markdown(f"**{brand.name}**")
            st.caption(f"{brand.billing_model.value} · {brand.region.value} · {brand.currency.value}")
            if brand.monthly_retainer_fee is not None:
                st.write(f"Retainer: {format_money(brand.monthly_retainer_fee, brand.currency.value)}/mo")
            st.write(f"Learned rates: {len(brand.learned_rates)}")
            if last_log:
                st.write(f"Last log: {last_log.month} · {HEALTH_BADGES.get(last_log.health.value)}")

            if st.button("Log work history", key=f"log_{brand.id}"):
                st.session_state['logging_for'] = brand.id
                st.session_state.pop('pending_review', None)
                st.session_state['work_table'] = self.parser.empty_table()
                st.rerun()

            if brand.learned_rates:
                with st.expander("Learned rates"):
                    st.dataframe(pd.DataFrame([
                        {'Service': r.name, 'Rate': r.current_rate, 'Industry': r.industry_rate, 'Unit': r.unit}
                        for r in brand.learned_rates
                    ]), hide_index=True, use_container_width=True)

    def _render_period_picker(self) -> Dict[str, int]:
        today = date.today()
        year_index = YEARS.index(today.year) if today.year in YEARS else len(YEARS) - 1

        col1, col2, col3, col4 = st.columns(4)
        start_month = col1.selectbox("From", range(12), index=today.month - 1,
                                     format_func=lambda m: MONTHS[m], key='start_month')
        start_year = col2.selectbox("Year", YEARS, index=year_index, key='start_year')
        end_month = col3.selectbox("To", range(12), index=today.month - 1,
                                   format_func=lambda m: MONTHS[m], key='end_month')
        end_year = col4.selectbox("Year ", YEARS, index=year_index, key='end_year')

        return {'start_year': start_year, 'start_month': start_month,
                'end_year': end_year, 'end_month': end_month}

    def _render_log_form(self, brand: Brand):
        st.markdown(f"### Log work for {brand.name}")

        period = self._render_period_picker()
        period_months = compute_period_months(**period)
        st.caption(f"Billing period: {period_months} month(s)")

        mode = st.radio("Input", [INPUT_MODE_TABLE, INPUT_MODE_SPREADSHEET, INPUT_MODE_NARRATIVE],
                        format_func=lambda m: {'table': 'Table grid', 'spreadsheet': 'Sheet paste',
                                               'narrative': 'Narrative'}[m],
                        horizontal=True, key='log_input_mode')

        text = ''
        table = st.session_state.get('work_table', self.parser.empty_table())
        if mode == INPUT_MODE_TABLE:
            paste = st.text_area("Paste rows from a spreadsheet (optional)", key='table_paste', height=80)
            if st.button("Load pasted rows") and self.parser.is_tabular_paste(paste):
                try:
                    table = self.parser.merge_paste(table, paste, 0)
                    st.session_state['work_table'] = table
                except ValueError as e:
                    st.error(str(e))
            table = st.data_editor(table, num_rows='dynamic', column_order=TABLE_COLUMNS,
                                   use_container_width=True, key='work_table_editor')
        else:
            text = st.text_area("Work history", key='log_text', height=200)

        raw_text = self.parser.build_work_input(mode, table, text)

        col_analyze, col_cancel = st.columns([3, 1])
        if col_analyze.button("Analyze with AI", type='primary', disabled=not raw_text.strip()):
            with st.spinner("Standardizing deliverables..."):
                success, review, _, notification = self.controller.analyze_work_log(
                    brand.id, raw_text, period_months
                )
            if success:
                st.session_state['pending_review'] = review
            show_notification(notification)
        if col_cancel.button("Cancel"):
            st.session_state.pop('logging_for', None)
            st.session_state.pop('pending_review', None)
            st.rerun()

        review: Optional[PendingLogReview] = st.session_state.get('pending_review')
        if review is not None:
            self._render_review(brand, review, period, period_months, raw_text)

    def _render_review(self, brand: Brand, review: PendingLogReview, period: Dict[str, int],
                       period_months: int, raw_input: str):
        st.markdown("#### Review")
        currency = brand.currency.value

        for index, item in enumerate(review.deliverables):
            cols = st.columns([4, 2, 2, 2])
            cols[0].write(f"{item.service} × {item.quantity:g} {item.unit}")
            cols[1].write(format_money(item.suggested_rate, currency))
            cols[2].write(format_money(item.total, currency))
            flagged = cols[3].checkbox("Overage", value=item.is_overage, key=f"overage_{id(review)}_{index}")
            if flagged != item.is_overage:
                toggle_overage(review, index)
                st.rerun()

        metric_cols = st.columns(4)
        metric_cols[0].metric("Market value", format_money(review.total_market_value, currency))
        metric_cols[1].metric("Sheet revenue", format_money(review.total_sheet_revenue or 0, currency))
        metric_cols[2].metric("Overage", format_money(review.overage_total, currency))
        metric_cols[3].metric("Health", HEALTH_BADGES.get(review.health.value, review.health.value))
        st.write(review.ai_insight)

        if st.button("Confirm log"):
            success, log, message, notification = self.controller.confirm_pending_log(
                brand.id, review, period_months, period_label(**period), raw_input
            )
            if success:
                st.session_state.pop('pending_review', None)
                st.session_state.pop('logging_for', None)
                st.success(message)
            show_notification(notification)


class ClientAuditView:
    """Per-brand profitability: effective monthly pay, health, log archive."""

    def __init__(self, controller: AgencyController):
        self.controller = controller

    def render(self):
        st.subheader("📈 Client Audit")

        summaries = self.controller.brand_summaries()
        if summaries:
            frame = pd.DataFrame([
                {
                    'Brand': s['brand_name'],
                    'Health': HEALTH_BADGES.get(s['health'], 'No data'),
                    'Effective / month': round(s['effective_monthly_revenue']),
                    'Nominal retainer': round(s['nominal_retainer_fee']),
                    'Delta': round(s['revenue_delta']),
                    'Logs': s['log_count'],
                }
                for s in summaries
            ])
            st.dataframe(frame, use_container_width=True, hide_index=True)

        brands = self.controller.registry.list_brands()
        if not brands:
            return

        brand_id = st.selectbox("Inspect brand", [b.id for b in brands],
                                format_func=lambda bid: self.controller.registry.get_brand(bid).name,
                                key='audit_brand')
        brand = self.controller.registry.get_brand(brand_id)
        self._render_brand_detail(brand)

    def _render_brand_detail(self, brand: Brand):
        with st.form(f"retainer_{brand.id}"):
            col1, col2 = st.columns(2)
            fee = col1.number_input("Monthly retainer fee", value=float(brand.monthly_retainer_fee or 0),
                                    step=1000.0)
            scope = col2.text_input("Retainer scope", value=brand.retainer_scope_limit or '')
            if st.form_submit_button("Save retainer"):
                _, _, _, notification = self.controller.update_brand(
                    brand.id, monthly_retainer_fee=fee, retainer_scope_limit=scope
                )
                show_notification(notification)

        logs = list(reversed(self.controller.work_logs.logs_for_brand(brand.id)))
        if not logs:
            st.info("No work logs yet.")
            return

        currency = brand.currency.value
        for log in logs:
            with st.expander(f"{log.month} · {format_money(log.actual_billed, currency)} · "
                             f"{HEALTH_BADGES.get(log.health.value)}"):
                cols = st.columns(3)
                cols[0].metric("Billed", format_money(log.actual_billed, currency))
                cols[1].metric("Market value", format_money(log.total_market_value, currency))
                cols[2].metric("Overage", format_money(log.overage_total, currency))
                if log.deliverables:
                    st.dataframe(estimate_items_frame(log.deliverables), use_container_width=True,
                                 hide_index=True)
                st.write(log.ai_insight)

                confirm_key = f"confirm_delete_{log.id}"
                if st.checkbox("I want to delete this log", key=confirm_key):
                    if st.button("Delete log", key=f"delete_log_{log.id}"):
                        _, _, _, notification = self.controller.delete_work_log(log.id)
                        show_notification(notification)
                        st.rerun()


class KnowledgeBaseView:
    """Rate card editing, invoice ingestion and pricing settings."""

    def __init__(self, controller: AgencyController):
        self.controller = controller

    def render(self):
        st.subheader("📚 Knowledge Base")

        tab_rates, tab_invoices, tab_settings = st.tabs(["Rate card", "Invoice ingestion", "Settings"])
        with tab_rates:
            self._render_rate_card()
        with tab_invoices:
            self._render_invoices()
        with tab_settings:
            self._render_settings()

    def _render_rate_card(self):
        rates = self.controller.catalog.rates
        for rate in rates:
            cols = st.columns([3, 2, 2, 2])
            cols[0].write(f"**{rate.name}** · {rate.category.value} · {rate.unit}")
            current = cols[1].number_input("Rate", value=float(rate.current_rate), key=f"rate_{rate.id}")
            industry = cols[2].number_input("Industry", value=float(rate.industry_rate),
                                            key=f"industry_{rate.id}")
            cols[3].write(rate.currency.value)
            if current != rate.current_rate or industry != rate.industry_rate:
                _, _, _, notification = self.controller.update_rate(rate.id, current_rate=current,
                                                                    industry_rate=industry)
                show_notification(notification)

        with st.expander("➕ Add rate manually"):
            with st.form("manual_rate_form", clear_on_submit=True):
                name = st.text_input("Service name")
                col1, col2 = st.columns(2)
                current_rate = col1.number_input("Agency rate", min_value=0.0)
                industry_rate = col2.number_input("Industry rate (blank = 1.5x)", min_value=0.0)
                col3, col4, col5 = st.columns(3)
                category = col3.selectbox("Category", list(Category), format_func=lambda c: c.value)
                currency = col4.selectbox("Currency", list(Currency), format_func=lambda c: c.value)
                unit = col5.text_input("Unit", value="per unit")
                if st.form_submit_button("Add rate"):
                    success, _, message, notification = self.controller.add_manual_rate(
                        name, current_rate, category, currency, industry_rate or None, unit
                    )
                    if success:
                        st.success(message)
                    show_notification(notification)

    def _render_invoices(self):
        text = st.text_area("Invoice text", key='invoice_text', height=140)
        upload = st.file_uploader("Invoice file", type=['png', 'jpg', 'jpeg', 'webp', 'pdf'],
                                  key='invoice_file')

        if st.button("Analyze invoice", disabled=not text.strip() and upload is None):
            try:
                file = uploaded_file_to_attachment(upload)
            except ValueError as e:
                st.error(str(e))
            else:
                with st.spinner("Extracting rates..."):
                    success, _, message, notification = self.controller.ingest_invoice(text, file)
                if success:
                    st.success(message)
                show_notification(notification)

        for insight in list(self.controller.knowledge_base.insights):
            with st.container(border=True):
                st.markdown(f"**{insight.detected_name}** · "
                            f"{format_money(insight.detected_rate, insight.detected_currency.value)} "
                            f"{insight.detected_unit}")
                st.caption(f"{insight.detected_category.value} · confidence {insight.confidence:.0%} · "
                           f"{insight.source_label}")
                col_discard, col_approve = st.columns(2)
                if col_discard.button("Discard", key=f"discard_{insight.id}"):
                    _, _, _, notification = self.controller.discard_insight(insight.id)
                    show_notification(notification)
                    st.rerun()
                if col_approve.button("Merge into rate card", key=f"approve_{insight.id}"):
                    _, _, _, notification = self.controller.approve_insight(insight.id)
                    show_notification(notification)
                    st.rerun()

    def _render_settings(self):
        settings = self.controller.settings
        with st.form("settings_form"):
            col1, col2 = st.columns(2)
            agency_multiplier = col1.number_input("Agency multiplier", value=float(settings.agency_multiplier),
                                                  step=0.1)
            international_multiplier = col2.number_input("International multiplier",
                                                         value=float(settings.international_multiplier),
                                                         step=0.1)
            col3, col4 = st.columns(2)
            junior = col3.number_input("Junior hourly cost", value=float(settings.junior_hourly_cost), step=50.0)
            senior = col4.number_input("Senior hourly cost", value=float(settings.senior_hourly_cost), step=50.0)
            philosophy = st.text_area("Pricing philosophy", value=settings.philosophy)
            if st.form_submit_button("Save settings"):
                success, _, message, notification = self.controller.update_settings(
                    agency_multiplier=agency_multiplier,
                    international_multiplier=international_multiplier,
                    junior_hourly_cost=junior,
                    senior_hourly_cost=senior,
                    philosophy=philosophy
                )
                if success:
                    st.success(message)
                show_notification(notification)

        st.markdown("**Tiers**")
        for tier in settings.tiers:
            st.write(f"- {tier.name.value} ({tier.price_range}): {', '.join(tier.deliverables)}")
