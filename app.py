"""
app.py
======================

動物図鑑 Wildpedia（Streamlit）エントリーポイント。

特徴:
- ホーム画面 + メニュー構成
- 図鑑 / 動物詳細 / 比較 / 保全状況 / 記録 / クイズ / 使い方
- 保全状況ページは ?status=EN のようなディープリンクに対応
- 動物詳細は ?id=<animal id> で直接開ける

前提:
- data/ に animals.json などの JSON が格納されている
  （環境変数 WILDPEDIA_DATA_URL があればそちらから取得する）
- config.toml があれば読み込む（なくても動く）
"""

from __future__ import annotations

import asyncio
import random
from typing import List, Optional

import pandas as pd
import streamlit as st

from wildpedia.catalog import CatalogStore
from wildpedia.config import AppConfig, setup_logging
from wildpedia.errors import FatalInitError
from wildpedia.models import Animal
from wildpedia.quiz import QuizSession
from wildpedia.scoring import overall_sense_score, sense_score
from wildpedia.sources import source_from_config
from wildpedia.ui import (
    animal_label,
    danger_badge,
    inject_theme,
    iucn_badge,
    render_animal_card,
    render_quiz_page,
    render_theme_selector,
)

STAT_COLUMNS = {
    "speed_kmh": "速さ (km/h)",
    "weight_kg": "体重 (kg)",
    "lifespan_years": "寿命 (年)",
    "height_cm": "体高 (cm)",
}

SENSE_COLUMNS = {
    "vision": "視覚",
    "hearing": "聴覚",
    "smell": "嗅覚",
    "taste": "味覚",
    "touch": "触覚",
}


# ----------------------------------------------------------------------
#  設定・ストア
# ----------------------------------------------------------------------
def get_config() -> AppConfig:
    """AppConfig をセッションに保持して返す。"""
    if "app_config" not in st.session_state:
        cfg = AppConfig.load()
        setup_logging(cfg.log_level)
        st.session_state["app_config"] = cfg
    return st.session_state["app_config"]  # type: ignore[return-value]


@st.cache_resource(show_spinner="図鑑データを読み込んでいます…")
def get_store() -> CatalogStore:
    """プロセス内で 1 度だけカタログを読み込む。必須データの失敗は FatalInitError。"""
    # セッションをまたいで共有されるので session_state は使わない
    cfg = AppConfig.load()
    return asyncio.run(CatalogStore.open(source_from_config(cfg)))


def get_quiz_session(store: CatalogStore) -> QuizSession:
    """QuizSession をセッションに保持して返す。"""
    if "quiz_session" not in st.session_state:
        st.session_state["quiz_session"] = QuizSession(
            store, length=get_config().quiz_length
        )
    return st.session_state["quiz_session"]  # type: ignore[return-value]


def set_page(page: str) -> None:
    st.session_state["page"] = page


def get_page() -> str:
    return st.session_state.get("page", "home")


def home_button() -> None:
    if st.button("🏠 ホームに戻る", use_container_width=True):
        st.query_params.clear()
        set_page("home")
        st.rerun()


def animal_select(store: CatalogStore, label: str, key: str, allow_empty: bool = True) -> str:
    animals = store.sorted_by_name()
    ids = ([""] if allow_empty else []) + [a.id for a in animals]

    def fmt(animal_id: str) -> str:
        animal = store.get_animal(animal_id)
        return animal_label(animal) if animal else "—"

    return st.selectbox(label, ids, format_func=fmt, key=key)


def animals_table(animals: List[Animal]) -> pd.DataFrame:
    rows = []
    for a in animals:
        row = {"動物": animal_label(a), "分類": a.animal_class, "IUCN": a.conservation_status}
        for key, column in STAT_COLUMNS.items():
            row[column] = getattr(a.stats, key)
        rows.append(row)
    return pd.DataFrame(rows)


# ----------------------------------------------------------------------
#  ページ: ホーム
# ----------------------------------------------------------------------
def render_home_page(store: CatalogStore) -> None:
    st.markdown(f"## 🐾 {get_config().app_name} へようこそ")
    st.write(f"- 収録動物: **{len(store.all_animals())} 種**")

    if store.degraded_sources:
        st.caption("一部のデータを読み込めませんでした: " + ", ".join(store.degraded_sources))

    col1, col2 = st.columns(2)
    with col1:
        if st.button("📖 図鑑を見る", use_container_width=True):
            set_page("browse")
            st.rerun()
        if st.button("⚖️ 比べてみる", use_container_width=True):
            set_page("compare")
            st.rerun()
        if st.button("🏅 記録と極限", use_container_width=True):
            set_page("records")
            st.rerun()
    with col2:
        if st.button("🛡️ 保全状況", use_container_width=True):
            set_page("conservation")
            st.rerun()
        if st.button("🚀 クイズに挑戦", use_container_width=True):
            set_page("quiz")
            st.rerun()
        if st.button("❓ 使い方", use_container_width=True):
            set_page("help")
            st.rerun()

    # 保全状況の内訳（クリックでディープリンク）
    counts = store.conservation_status_counts()
    if counts:
        st.markdown("### 保全状況の内訳")
        for status, count in counts:
            if st.button(f"{status.id}: {count} 種", key=f"home_status_{status.id}"):
                st.query_params["status"] = status.id
                set_page("conservation")
                st.rerun()

    facts = store.random_fun_facts(random.Random())
    if facts:
        st.markdown("### 豆知識")
        for animal, fact in facts:
            render_animal_card(animal, subtitle=fact)

    st.write("---")
    render_theme_selector()


# ----------------------------------------------------------------------
#  ページ: 図鑑（絞り込み）
# ----------------------------------------------------------------------
def render_browse_page(store: CatalogStore) -> None:
    inject_theme()
    st.markdown("## 📖 図鑑")

    keyword = st.text_input("名前で検索")
    animals = store.search(keyword) if keyword.strip() else store.sorted_by_name()

    classes = sorted({a.animal_class for a in store.all_animals() if a.animal_class})
    habitats = [h.id for h in store.habitats()]
    continents = sorted({c for a in store.all_animals() for c in a.continent})

    col1, col2, col3 = st.columns(3)
    with col1:
        cls = st.selectbox("分類", [""] + classes)
    with col2:
        habitat = st.selectbox("生息地", [""] + habitats)
    with col3:
        continent = st.selectbox("大陸", [""] + continents)
    danger = st.slider("人への危険度", 1, 5, (1, 5))

    ids = {a.id for a in animals}
    if cls:
        ids &= {a.id for a in store.animals_by_class(cls)}
    if habitat:
        ids &= {a.id for a in store.animals_by_habitat(habitat)}
    if continent:
        ids &= {a.id for a in store.animals_by_continent(continent)}
    if danger != (1, 5):
        ids &= {a.id for a in store.animals_by_danger_level(*danger)}

    filtered = [a for a in animals if a.id in ids]
    st.write(f"{len(filtered)} 種")
    for animal in filtered:
        if st.button(animal_label(animal), key=f"browse_{animal.id}", use_container_width=True):
            st.query_params["id"] = animal.id
            set_page("detail")
            st.rerun()

    home_button()


# ----------------------------------------------------------------------
#  ページ: 動物詳細
# ----------------------------------------------------------------------
def render_detail_page(store: CatalogStore) -> None:
    inject_theme()
    animal_id = st.query_params.get("id", "")
    animal: Optional[Animal] = store.get_animal(animal_id) if animal_id else None

    if animal is None:
        st.error("動物が見つかりません。")
        home_button()
        return

    st.markdown(f"## {animal_label(animal)}")
    st.markdown(
        iucn_badge(animal.conservation_status) + danger_badge(animal.danger_level),
        unsafe_allow_html=True,
    )
    if animal.scientific_name:
        st.markdown(f"*{animal.scientific_name}*")
    if animal.continent:
        st.write("大陸: " + ", ".join(animal.continent))

    st.markdown("### ステータス")
    cols = st.columns(len(STAT_COLUMNS))
    for col, (key, label) in zip(cols, STAT_COLUMNS.items()):
        value = getattr(animal.stats, key)
        col.metric(label, value if value is not None else "—")

    st.markdown("### 感覚")
    st.bar_chart(
        pd.DataFrame(
            {"値": [sense_score(animal, k) for k in SENSE_COLUMNS]},
            index=list(SENSE_COLUMNS.values()),
        )
    )
    st.write(f"総合感覚スコア: **{overall_sense_score(animal)}**")
    if animal.senses and animal.senses.special:
        st.write("特殊能力: " + ", ".join(s.replace("_", " ") for s in animal.senses.special))

    col_s, col_w = st.columns(2)
    with col_s:
        st.markdown("### 強み")
        st.markdown("\n".join(f"- {s.replace('_', ' ')}" for s in animal.strengths) or "—")
    with col_w:
        st.markdown("### 弱み")
        st.markdown("\n".join(f"- {w.replace('_', ' ')}" for w in animal.weaknesses) or "—")

    if animal.fun_facts:
        st.markdown("### 豆知識")
        st.markdown("\n".join(f"- {f}" for f in animal.fun_facts))

    related = store.related_animals(animal.id)
    if related:
        st.markdown("### 関連する動物")
        for other in related:
            if st.button(animal_label(other), key=f"related_{other.id}"):
                st.query_params["id"] = other.id
                st.rerun()

    with st.expander("データ (JSON)"):
        st.json(animal.to_dict())

    home_button()


# ----------------------------------------------------------------------
#  ページ: 比較
# ----------------------------------------------------------------------
def render_compare_page(store: CatalogStore) -> None:
    inject_theme()
    st.markdown("## ⚖️ 比べてみる")

    cols = st.columns(3)
    selected_ids = []
    for i, col in enumerate(cols):
        with col:
            selected_ids.append(animal_select(store, f"動物 {i + 1}", key=f"compare_{i}"))

    selected = store.compare(selected_ids)
    if len(selected) < 2:
        st.info("2 種類以上選ぶと比較できます。")
    else:
        st.dataframe(animals_table(selected), use_container_width=True)
        senses = pd.DataFrame(
            {animal_label(a): [sense_score(a, k) for k in SENSE_COLUMNS] for a in selected},
            index=list(SENSE_COLUMNS.values()),
        )
        st.bar_chart(senses)

    home_button()


# ----------------------------------------------------------------------
#  ページ: 保全状況
# ----------------------------------------------------------------------
def render_conservation_page(store: CatalogStore) -> None:
    inject_theme()
    st.markdown("## 🛡️ 保全状況")

    statuses = store.conservation_statuses()
    if not statuses:
        st.info("保全データがありません。")
        home_button()
        return

    ids = [s.id for s in statuses]
    deep_status = st.query_params.get("status", "")
    index = ids.index(deep_status) if deep_status in ids else 0
    status_id = st.radio("ステータス", ids, index=index, horizontal=True)

    animals = store.conservation_view(status_id)
    st.markdown(f"{iucn_badge(status_id)} **{len(animals)} 種**", unsafe_allow_html=True)
    if not animals:
        st.write("該当する動物はいません。")
    for animal in animals:
        render_animal_card(animal, color=store.get_conservation_status(status_id).color)

    threats = store.conservation_threats()
    if threats:
        st.markdown("### 主な脅威")
        for threat in threats:
            names = ", ".join(animal_label(a) for a in store.threat_animals(threat))
            st.write(f"{threat.icon} {threat.name_key}: {names}")

    stories = store.success_stories()
    if stories:
        st.markdown("### 回復の物語")
        for story in stories:
            animal = store.get_animal(story.animal_id)
            if animal is None:
                continue
            st.markdown(
                f"{animal_label(animal)} {iucn_badge(story.from_status)} → "
                f"{iucn_badge(story.to_status)} ({story.year or '—'})",
                unsafe_allow_html=True,
            )

    home_button()


# ----------------------------------------------------------------------
#  ページ: 記録と極限
# ----------------------------------------------------------------------
def render_records_page(store: CatalogStore) -> None:
    inject_theme()
    st.markdown("## 🏅 記録と極限")

    tab_speed, tab_weight, tab_life, tab_records = st.tabs(
        ["速さ", "重さ", "寿命", "記録一覧"]
    )
    with tab_speed:
        st.dataframe(animals_table(store.top_by_speed(10)), use_container_width=True)
    with tab_weight:
        st.dataframe(animals_table(store.top_by_weight(10)), use_container_width=True)
    with tab_life:
        st.dataframe(animals_table(store.top_by_lifespan(10)), use_container_width=True)
    with tab_records:
        categories = store.record_categories()
        if not categories:
            st.info("記録データがありません。")
        else:
            category = st.radio("カテゴリ", categories, horizontal=True)
            for record in store.records_by_category(category):
                holder = store.record_holder(record)
                st.markdown(f"#### {record.icon} {record.name_key}")
                if holder is not None:
                    render_animal_card(holder, subtitle=record.value)
                runners_up = store.record_runners_up(record)
                if runners_up:
                    st.write("次点: " + ", ".join(animal_label(a) for a in runners_up))

    home_button()


# ----------------------------------------------------------------------
#  ページ: クイズ
# ----------------------------------------------------------------------
def render_quiz_main_page(store: CatalogStore) -> None:
    session = get_quiz_session(store)
    ui_result = render_quiz_page(session)

    if ui_result["clicked_start"]:
        session.start()
        st.rerun()
    elif ui_result["selected_choice"] is not None:
        session.answer(ui_result["selected_choice"])
        st.rerun()
    elif ui_result["clicked_next"]:
        session.advance()
        st.rerun()
    elif ui_result["clicked_restart"]:
        session.restart()
        st.rerun()

    home_button()


# ----------------------------------------------------------------------
#  ページ: 使い方
# ----------------------------------------------------------------------
def render_help_page() -> None:
    st.markdown("## ❓ 使い方")

    st.markdown(
        """
1. 「📖 図鑑を見る」で分類・生息地・大陸・危険度から動物を絞り込めます。
2. 動物を選ぶと、ステータスや感覚、豆知識、関連する動物が表示されます。
3. 「⚖️ 比べてみる」では最大 3 種類の動物を並べて比較できます。
4. 「🛡️ 保全状況」は `?status=EN` のように URL でステータスを指定して開けます。
5. 「🚀 クイズに挑戦」では図鑑のデータから毎回ちがう四択問題が出題されます。
        """
    )

    home_button()


# ----------------------------------------------------------------------
#  メイン
# ----------------------------------------------------------------------
def main() -> None:
    st.set_page_config(
        page_title="Wildpedia",
        page_icon="🐾",
        layout="centered",
    )

    get_config()
    try:
        store = get_store()
    except FatalInitError as e:
        st.error(f"図鑑データを読み込めませんでした。{e}")
        st.stop()

    # ディープリンクが付いていればそのページを開く
    if "status" in st.query_params and "page" not in st.session_state:
        set_page("conservation")
    elif "id" in st.query_params and "page" not in st.session_state:
        set_page("detail")

    page = get_page()

    if page == "browse":
        render_browse_page(store)
    elif page == "detail":
        render_detail_page(store)
    elif page == "compare":
        render_compare_page(store)
    elif page == "conservation":
        render_conservation_page(store)
    elif page == "records":
        render_records_page(store)
    elif page == "quiz":
        render_quiz_main_page(store)
    elif page == "help":
        render_help_page()
    else:
        # デフォルトはホーム
        set_page("home")
        inject_theme()
        render_home_page(store)


if __name__ == "__main__":
    main()
