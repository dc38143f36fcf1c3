"""
ui.py
======================

Streamlit ベースの UI コンポーネントをまとめたモジュール。

責務:
- スマートフォンを主ターゲットとしたレイアウトとスタイル
- 動物カード・バッジ（IUCN / 危険度）の描画
- クイズ画面の描画（問題・選択肢・解説・結果）

ここでは「見た目」と「ユーザー操作の入力」を扱い、
出題ロジックや採点は quiz.QuizSession 側に任せる。

戻り値として「何が押されたか」「どの選択肢が新たに選ばれたか」を返す。
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import streamlit as st

from .models import Animal
from .quiz import QuizPhase, QuizSession
from .scoring import danger_color, danger_label, iucn_color

# ----------------------------------------------------------------------
#  テーマ定義
# ----------------------------------------------------------------------


THEMES: Dict[str, Dict[str, str]] = {
    "light": {
        "bg": "#ffffff",
        "text": "#1c1c1e",
        "surface": "#f5f1ea",
        "surface_alt": "#ffffff",
        "border": "#d8cfc2",
        "primary": "#bf6a1f",
        "correct": "#2e7d32",
        "incorrect": "#c62828",
    },
    "dark": {
        "bg": "#000000",
        "text": "#f5f5f7",
        "surface": "#1c1c1e",
        "surface_alt": "#2c2c2e",
        "border": "#3a3a3c",
        "primary": "#e69138",
        "correct": "#30d158",
        "incorrect": "#ff453a",
    },
    "forest": {
        "bg": "#f3f8f4",
        "text": "#10261a",
        "surface": "#e2efe5",
        "surface_alt": "#ffffff",
        "border": "#bcd4c2",
        "primary": "#1a6b5c",
        "correct": "#1f9d55",
        "incorrect": "#d64545",
    },
}

RATING_DISPLAY: Dict[str, Dict[str, str]] = {
    "perfect": {"emoji": "🏆", "message": "パーフェクト！"},
    "great": {"emoji": "🌟", "message": "すばらしい！"},
    "good": {"emoji": "👍", "message": "いい調子！"},
    "try_again": {"emoji": "🐾", "message": "もう一度挑戦してみよう！"},
}


# ----------------------------------------------------------------------
#  CSS 生成
# ----------------------------------------------------------------------
def _generate_css(theme: Dict[str, str]) -> str:
    """テーマに応じたグローバル CSS を生成する。"""

    return f"""
    <style>
    html, body {{
        background: {theme['bg']};
        color: {theme['text']};
        -webkit-text-size-adjust: 100%;
        touch-action: manipulation;
    }}

    .wp-badge {{
        display: inline-block;
        padding: 0.1rem 0.5rem;
        border-radius: 999px;
        color: #ffffff;
        font-size: 0.75rem;
        font-weight: 600;
        margin-right: 0.25rem;
    }}

    .wp-tag {{
        display: inline-block;
        padding: 0.1rem 0.5rem;
        border-radius: 999px;
        background: {theme['surface']};
        border: 1px solid {theme['border']};
        font-size: 0.75rem;
        margin-right: 0.25rem;
    }}

    .wp-card {{
        background: {theme['surface_alt']};
        border: 1px solid {theme['border']};
        border-left: 4px solid {theme['primary']};
        border-radius: 10px;
        padding: 0.75rem;
        margin-bottom: 0.5rem;
    }}

    .wp-card-title {{
        font-weight: 600;
        font-size: 1.05rem;
    }}

    .wp-progress {{
        height: 8px;
        background: {theme['border']}55;
        border-radius: 4px;
        overflow: hidden;
        margin: 0.3rem 0 0.6rem 0;
    }}

    .wp-progress-fill {{
        height: 8px;
        background: {theme['primary']};
        border-radius: 4px;
    }}

    .wp-question-box {{
        background: {theme['surface_alt']};
        padding: 1rem;
        border-radius: 12px;
        border: 1px solid {theme['border']};
        font-size: 1.1rem;
        line-height: 1.6;
        margin-bottom: 0.75rem;
    }}

    .wp-feedback-correct {{
        padding: 0.9rem;
        border-radius: 10px;
        background: {theme['correct']}22;
        border: 1px solid {theme['correct']};
    }}

    .wp-feedback-wrong {{
        padding: 0.9rem;
        border-radius: 10px;
        background: {theme['incorrect']}22;
        border: 1px solid {theme['incorrect']};
    }}

    .wp-score-big {{
        font-size: 3rem;
        font-weight: 700;
        text-align: center;
    }}

    .wp-safe-bottom {{
        height: 80px;
    }}
    </style>
    """


# ----------------------------------------------------------------------
#  テーマ関連
# ----------------------------------------------------------------------
def _ensure_theme() -> str:
    """セッションに theme キーを用意し、現在のテーマキーを返す。"""
    theme_key = st.session_state.get("theme", "light")
    if theme_key not in THEMES:
        theme_key = "light"
    st.session_state["theme"] = theme_key
    return theme_key


def inject_theme() -> Dict[str, str]:
    """CSS を注入して現在のテーマ辞書を返す。各ページの先頭で呼ぶ。"""
    theme = THEMES[_ensure_theme()]
    st.markdown(_generate_css(theme), unsafe_allow_html=True)
    return theme


def render_theme_selector() -> str:
    options = list(THEMES)
    current = _ensure_theme()
    selected = st.radio(
        "テーマ",
        options,
        index=options.index(current),
        horizontal=True,
        format_func=lambda k: k.capitalize(),
    )
    st.session_state["theme"] = selected
    return selected


# ----------------------------------------------------------------------
#  バッジ・カード
# ----------------------------------------------------------------------
def iucn_badge(status: Optional[str]) -> str:
    if not status:
        return ""
    return f"<span class='wp-badge' style='background:{iucn_color(status)}'>{status}</span>"


def danger_badge(level: Optional[int]) -> str:
    if level is None:
        return ""
    dots = "●" * level + "○" * (5 - level)
    return (
        f"<span class='wp-badge' style='background:{danger_color(level)}' "
        f"title='{danger_label(level)}'>{dots}</span>"
    )


def animal_label(animal: Animal) -> str:
    return f"{animal.emoji or '🐾'} {animal.name}"


def render_animal_card(animal: Animal, subtitle: str = "", color: str = "") -> None:
    """動物 1 体分のカード。"""
    style = f" style='border-left-color:{color}'" if color else ""
    tags = "".join(
        f"<span class='wp-tag'>{t}</span>" for t in (animal.animal_class, animal.diet) if t
    )
    html = (
        f"<div class='wp-card'{style}>"
        f"<div class='wp-card-title'>{animal_label(animal)}</div>"
        f"<div>{iucn_badge(animal.conservation_status)}{tags}</div>"
    )
    if subtitle:
        html += f"<div style='margin-top:0.3rem'>{subtitle}</div>"
    html += "</div>"
    st.markdown(html, unsafe_allow_html=True)


# ----------------------------------------------------------------------
#  公開 API: クイズページの描画
# ----------------------------------------------------------------------
def render_quiz_page(session: QuizSession) -> Dict[str, Any]:
    """
    クイズ画面を描画し、ユーザー操作の結果を返す。

    引数:
        session:
            quiz.QuizSession のインスタンス。

    戻り値:
        {
          "clicked_start": bool,
          "selected_choice": Optional[str],   # 新たに押された選択肢の動物 id
          "clicked_next": bool,
          "clicked_restart": bool,
        }
    """
    inject_theme()

    result: Dict[str, Any] = {
        "clicked_start": False,
        "selected_choice": None,
        "clicked_next": False,
        "clicked_restart": False,
    }

    if session.phase is QuizPhase.IDLE:
        st.markdown("## 🐾 どうぶつクイズ")
        st.write("動物たちの記録や特徴から、四択問題が最大 10 問出題されます。")
        if st.button("スタート", key="wp_start", use_container_width=True):
            result["clicked_start"] = True
        return result

    if session.phase is QuizPhase.FINISHED:
        _render_results(session, result)
        return result

    q = session.current_question
    total = session.total
    percent = int(session.position / total * 100) if total else 0

    # ----------------------------------------
    # ヘッダー（進捗・スコア）
    # ----------------------------------------
    col_left, col_right = st.columns([2, 1])
    with col_left:
        st.markdown(f"**{session.position + 1} / {total} 問目**")
    with col_right:
        st.markdown(
            f"<div style='text-align:right'>スコア: {session.score}</div>",
            unsafe_allow_html=True,
        )
    st.markdown(
        f"<div class='wp-progress'><div class='wp-progress-fill' style='width:{percent}%'></div></div>",
        unsafe_allow_html=True,
    )

    # ----------------------------------------
    # 問題文・選択肢
    # ----------------------------------------
    st.markdown(f"<div class='wp-question-box'>{q.prompt}</div>", unsafe_allow_html=True)

    answer = session.last_answer
    for animal in q.options:
        label = animal_label(animal)
        if answer is not None:
            if animal.id == q.correct_id:
                label = f"✅ {label}"
            elif animal.id == answer.choice_id:
                label = f"❌ {label}"
        if st.button(
            label,
            key=f"wp_choice_{session.position}_{animal.id}",
            use_container_width=True,
            disabled=answer is not None,
        ):
            result["selected_choice"] = animal.id

    # ----------------------------------------
    # 解説と「次へ」（解答済みの場合のみ）
    # ----------------------------------------
    if answer is not None:
        css = "wp-feedback-correct" if answer.correct else "wp-feedback-wrong"
        mark = "✓ " if answer.correct else "✗ "
        st.markdown(f"<div class='{css}'>{mark}{q.explanation}</div>", unsafe_allow_html=True)
        label = "結果を見る ▶" if session.state.is_last else "次の問題 ▶"
        if st.button(label, key="wp_next", use_container_width=True):
            result["clicked_next"] = True

    st.markdown("<div class='wp-safe-bottom'></div>", unsafe_allow_html=True)
    return result


def _render_results(session: QuizSession, result: Dict[str, Any]) -> None:
    display = RATING_DISPLAY[session.rating()]
    st.markdown(f"<div class='wp-score-big'>{display['emoji']}</div>", unsafe_allow_html=True)
    st.markdown(
        f"<div class='wp-score-big'>{session.score}/{session.total}</div>",
        unsafe_allow_html=True,
    )
    st.markdown(f"<p style='text-align:center'>{display['message']}</p>", unsafe_allow_html=True)
    if session.total == 0:
        st.info("出題できる問題がありませんでした。データを確認してください。")
    if st.button("もう一度あそぶ", key="wp_restart", use_container_width=True):
        result["clicked_restart"] = True
