"""
quiz.py
======================

カタログから四択クイズを組み立て、1 セッション分の進行と採点を管理するモジュール。

出題の流れ:
1. 問題ファミリー（「最も速い動物は？」「哺乳類はどれ？」など）ごとに
   正解候補プールと不正解（ディストラクタ）候補プールを作る
2. 正解候補 1 体以上・ディストラクタ 3 体以上そろったファミリーだけ出題対象
   （足りないファミリーは水増しせず省く）
3. 正解 1 体 + ディストラクタ 3 体（非復元抽出）を一様シャッフルして選択肢にする
4. 出題対象の問題全体もシャッフルし、セッション長（既定 10 問）で切る

セッション状態は不変の QuizState と純粋な遷移関数
(start_state / apply_answer / apply_advance / apply_restart) で表し、
QuizSession はそれをストア・乱数源と結びつける薄いラッパー。

乱数源は random.Random を注入できる（テストではシード固定）。
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .catalog import CatalogStore
from .errors import CatalogNotLoadedError, QuizStateError
from .models import Animal

logger = logging.getLogger(__name__)

DEFAULT_QUIZ_LENGTH = 10
DISTRACTOR_COUNT = 3
MIN_CORRECT_POOL = 1

CLASS_LABELS = {
    "mammal": "哺乳類",
    "bird": "鳥類",
    "reptile": "爬虫類",
}


# ----------------------------------------------------------------------
#  Question
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Question:
    """
    四択問題 1 問。

    options は表示順。正誤判定は表示名ではなく id の完全一致で行う。
    """

    family: str
    prompt: str
    options: Tuple[Animal, ...]
    correct_id: str
    explanation: str

    @property
    def option_ids(self) -> Tuple[str, ...]:
        return tuple(a.id for a in self.options)

    @property
    def correct_index(self) -> int:
        return self.option_ids.index(self.correct_id)

    @property
    def correct_option(self) -> Animal:
        return self.options[self.correct_index]

    def is_correct(self, choice_id: str) -> bool:
        return choice_id == self.correct_id


# ----------------------------------------------------------------------
#  問題ファミリー
# ----------------------------------------------------------------------
Pool = Callable[[Sequence[Animal]], List[Animal]]
Render = Callable[[Animal, random.Random], Tuple[str, str]]


@dataclass(frozen=True)
class QuestionFamily:
    """
    1 種類の問題の作り方。

    key:
        ファミリー識別子（例: "fastest_on_land"）
    correct_pool / distractor_pool:
        全動物から候補プールを作る関数
    render:
        正解の動物から (問題文, 解説) を作る関数
    ranked:
        True なら correct_pool の先頭（ランキング 1 位）を正解に固定する
    """

    key: str
    correct_pool: Pool
    distractor_pool: Pool
    render: Render
    ranked: bool = False


def _fmt(value: float) -> str:
    """12000.0 → "12,000"、1.5 → "1.5"。"""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


def _ranked(key: str) -> Pool:
    # sorted は安定ソートなので、同値は収録順が先のものが上位になる
    def pool(animals: Sequence[Animal]) -> List[Animal]:
        return sorted(
            (a for a in animals if a.stats.get(key) > 0),
            key=lambda a: a.stats.get(key),
            reverse=True,
        )

    return pool


def _ranked_from(key: str, offset: int) -> Pool:
    ranked = _ranked(key)
    return lambda animals: ranked(animals)[offset:]


def _where(predicate: Callable[[Animal], bool]) -> Pool:
    return lambda animals: [a for a in animals if predicate(a)]


def _fixed(prompt: str, explain: Callable[[Animal], str]) -> Render:
    return lambda animal, rng: (prompt, explain(animal))


def _render_fun_fact(animal: Animal, rng: random.Random) -> Tuple[str, str]:
    fact = rng.choice(animal.fun_facts)
    return (
        f"「{fact}」これはどの動物の話？",
        f"「{fact}」は{animal.name}の豆知識です。",
    )


def _class_family(animal_class: str) -> QuestionFamily:
    label = CLASS_LABELS.get(animal_class, animal_class)
    return QuestionFamily(
        key=f"class_{animal_class}",
        correct_pool=_where(lambda a: a.animal_class == animal_class),
        distractor_pool=_where(lambda a: a.animal_class != animal_class),
        render=_fixed(f"次のうち{label}はどれ？", lambda a: f"{a.name}は{label}です。"),
    )


def default_families() -> List[QuestionFamily]:
    """標準の問題ファミリー一覧。"""
    return [
        QuestionFamily(
            key="fastest_on_land",
            correct_pool=_ranked("speed_kmh"),
            distractor_pool=_ranked_from("speed_kmh", 1),
            render=_fixed(
                "最も速く走れる動物はどれ？",
                lambda a: f"{a.name}は時速 {_fmt(a.stats.speed_kmh)} km に達します！",
            ),
            ranked=True,
        ),
        QuestionFamily(
            key="critically_endangered",
            correct_pool=_where(lambda a: a.conservation_status == "CR"),
            distractor_pool=_where(lambda a: a.conservation_status == "LC"),
            render=_fixed(
                "絶滅危惧IA類（CR）に分類されている動物はどれ？",
                lambda a: f"{a.name}は IUCN により絶滅危惧IA類（{a.conservation_status}）に分類されています。",
            ),
        ),
        QuestionFamily(
            key="echolocation",
            correct_pool=_where(lambda a: a.has_special_sense("echolocation")),
            distractor_pool=_where(lambda a: not a.has_special_sense("echolocation")),
            render=_fixed(
                "エコーロケーション（反響定位）を使う動物はどれ？",
                lambda a: f"{a.name}はエコーロケーションで周囲を探り、獲物を見つけます。",
            ),
        ),
        # 2〜3 位は紛らわしいので、ディストラクタは 4 位以下から選ぶ
        QuestionFamily(
            key="heaviest",
            correct_pool=_ranked("weight_kg"),
            distractor_pool=_ranked_from("weight_kg", 3),
            render=_fixed(
                "最も重い動物はどれ？",
                lambda a: f"{a.name}の体重は最大 {_fmt(a.stats.weight_kg)} kg にもなります！",
            ),
            ranked=True,
        ),
        QuestionFamily(
            key="most_dangerous",
            correct_pool=_where(lambda a: a.danger_level is not None and a.danger_level >= 4),
            distractor_pool=_where(lambda a: a.danger_level is not None and a.danger_level <= 2),
            render=_fixed(
                "人間にとって危険とされる動物はどれ？",
                lambda a: f"{a.name}の危険度は {a.danger_level}/5 です。",
            ),
        ),
        QuestionFamily(
            key="longest_lived",
            correct_pool=_ranked("lifespan_years"),
            distractor_pool=_ranked_from("lifespan_years", 3),
            render=_fixed(
                "最も長生きする動物はどれ？",
                lambda a: f"{a.name}は最長 {_fmt(a.stats.lifespan_years)} 年生きます！",
            ),
            ranked=True,
        ),
        _class_family("mammal"),
        _class_family("bird"),
        _class_family("reptile"),
        QuestionFamily(
            key="ocean_habitat",
            correct_pool=_where(lambda a: "ocean" in a.habitat),
            distractor_pool=_where(lambda a: bool(a.habitat) and "ocean" not in a.habitat),
            render=_fixed(
                "海に暮らす動物はどれ？",
                lambda a: f"{a.name}は海（ocean）の生息地で見られます。",
            ),
        ),
        QuestionFamily(
            key="fun_fact",
            correct_pool=_where(lambda a: bool(a.fun_facts)),
            distractor_pool=_where(lambda a: bool(a.fun_facts)),
            render=_render_fun_fact,
        ),
    ]


# ----------------------------------------------------------------------
#  問題生成
# ----------------------------------------------------------------------
def build_question(
    family: QuestionFamily,
    animals: Sequence[Animal],
    rng: random.Random,
) -> Optional[Question]:
    """
    ファミリー 1 つから問題を 1 問作る。条件を満たさなければ None。
    """
    correct_pool = family.correct_pool(animals)
    if len(correct_pool) < MIN_CORRECT_POOL:
        return None

    correct = correct_pool[0] if family.ranked else rng.choice(correct_pool)
    distractors = [a for a in family.distractor_pool(animals) if a.id != correct.id]
    if len(distractors) < DISTRACTOR_COUNT:
        return None

    options = [correct] + rng.sample(distractors, DISTRACTOR_COUNT)
    rng.shuffle(options)
    prompt, explanation = family.render(correct, rng)

    return Question(
        family=family.key,
        prompt=prompt,
        options=tuple(options),
        correct_id=correct.id,
        explanation=explanation,
    )


def generate_questions(
    store: CatalogStore,
    rng: Optional[random.Random] = None,
    length: int = DEFAULT_QUIZ_LENGTH,
    families: Optional[Iterable[QuestionFamily]] = None,
) -> List[Question]:
    """
    出題可能な全ファミリーから 1 問ずつ作り、シャッフルして length 問に切る。
    毎回ストアの現在のデータから評価する。
    """
    rng = rng or random.Random()
    animals = store.all_animals()
    families = list(families) if families is not None else default_families()

    questions: List[Question] = []
    for family in families:
        question = build_question(family, animals, rng)
        if question is None:
            logger.debug(f"Question family '{family.key}' not eligible")
            continue
        questions.append(question)

    rng.shuffle(questions)
    return questions[: max(length, 0)]


def eligible_families(
    store: CatalogStore,
    families: Optional[Iterable[QuestionFamily]] = None,
) -> List[str]:
    """現在のカタログで出題可能なファミリーの key（乱数は使わない）。"""
    animals = store.all_animals()
    families = list(families) if families is not None else default_families()
    keys: List[str] = []
    for family in families:
        correct_pool = family.correct_pool(animals)
        if len(correct_pool) < MIN_CORRECT_POOL:
            continue
        head = correct_pool[0]
        distractors = [a for a in family.distractor_pool(animals) if a.id != head.id]
        if len(distractors) >= DISTRACTOR_COUNT:
            keys.append(family.key)
    return keys


# ----------------------------------------------------------------------
#  セッション状態（純粋な遷移）
# ----------------------------------------------------------------------
class QuizPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class AnswerRecord:
    """解答 1 件分の履歴（セッション内のみ保持、永続化しない）。"""

    family: str
    choice_id: str
    correct_id: str
    correct: bool


@dataclass(frozen=True)
class QuizState:
    phase: QuizPhase = QuizPhase.IDLE
    questions: Tuple[Question, ...] = ()
    position: int = 0
    score: int = 0
    answered: bool = False
    history: Tuple[AnswerRecord, ...] = ()

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase is not QuizPhase.ACTIVE:
            return None
        return self.questions[self.position]

    @property
    def is_last(self) -> bool:
        return self.position >= len(self.questions) - 1

    @property
    def last_answer(self) -> Optional[AnswerRecord]:
        """現在の問題に対する解答（未解答なら None）。"""
        if not self.answered or not self.history:
            return None
        return self.history[-1]


def start_state(questions: Iterable[Question]) -> QuizState:
    """新しいセッション。問題が 0 問なら即 finished（0/0）。"""
    questions = tuple(questions)
    if not questions:
        return QuizState(phase=QuizPhase.FINISHED)
    return QuizState(phase=QuizPhase.ACTIVE, questions=questions)


def apply_answer(state: QuizState, choice_id: str) -> QuizState:
    """
    現在の問題に解答する。
    同じ問題への 2 回目以降の解答は無視し、state をそのまま返す（二重加点防止）。
    """
    if state.phase is not QuizPhase.ACTIVE:
        raise QuizStateError(f"{state.phase.value} 状態では解答できません")
    if state.answered:
        return state

    question = state.questions[state.position]
    if choice_id not in question.option_ids:
        raise QuizStateError(f"選択肢にない id です: {choice_id}")

    correct = question.is_correct(choice_id)
    record = AnswerRecord(
        family=question.family,
        choice_id=choice_id,
        correct_id=question.correct_id,
        correct=correct,
    )
    return replace(
        state,
        score=state.score + (1 if correct else 0),
        answered=True,
        history=state.history + (record,),
    )


def apply_advance(state: QuizState) -> QuizState:
    """次の問題へ。最後の問題なら finished へ。"""
    if state.phase is not QuizPhase.ACTIVE:
        raise QuizStateError(f"{state.phase.value} 状態では次に進めません")
    if state.is_last:
        return replace(state, phase=QuizPhase.FINISHED, position=state.total, answered=False)
    return replace(state, position=state.position + 1, answered=False)


def apply_restart(state: QuizState) -> QuizState:
    """idle に戻す。問題・スコア・履歴は破棄。"""
    return QuizState()


def rating(score: int, total: int) -> str:
    """結果画面の評価ランク。"""
    pct = round(score / total * 100) if total > 0 else 0
    if pct == 100:
        return "perfect"
    if pct >= 70:
        return "great"
    if pct >= 40:
        return "good"
    return "try_again"


# ----------------------------------------------------------------------
#  QuizSession
# ----------------------------------------------------------------------
class QuizSession:
    """
    1 プレイ分のクイズ。

    主な操作:
    - start()   : 問題を生成して active へ（どの状態からでも呼べる＝やり直し）
    - answer()  : 現在の問題に解答。初回は正誤 (bool)、2 回目以降は None
    - advance() : 次の問題へ / 最後なら finished
    - restart() : idle へ戻す
    """

    def __init__(
        self,
        store: CatalogStore,
        rng: Optional[random.Random] = None,
        length: int = DEFAULT_QUIZ_LENGTH,
        families: Optional[Iterable[QuestionFamily]] = None,
    ):
        if not store.is_loaded:
            raise CatalogNotLoadedError("クイズを始める前に CatalogStore.load() が必要です")
        self.store = store
        self.rng = rng or random.Random()
        self.length = length
        self.families = list(families) if families is not None else default_families()
        self.state = QuizState()

    # ------------------------------------------------------------
    # 状態参照
    # ------------------------------------------------------------
    @property
    def phase(self) -> QuizPhase:
        return self.state.phase

    @property
    def current_question(self) -> Optional[Question]:
        return self.state.current_question

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def total(self) -> int:
        return self.state.total

    @property
    def position(self) -> int:
        return self.state.position

    @property
    def is_answered(self) -> bool:
        return self.state.answered

    @property
    def last_answer(self) -> Optional[AnswerRecord]:
        return self.state.last_answer

    @property
    def history(self) -> Tuple[AnswerRecord, ...]:
        return self.state.history

    def rating(self) -> str:
        return rating(self.state.score, self.state.total)

    # ------------------------------------------------------------
    # イベント
    # ------------------------------------------------------------
    def start(self) -> None:
        questions = generate_questions(
            self.store, rng=self.rng, length=self.length, families=self.families
        )
        self.state = start_state(questions)
        logger.info(f"Quiz session started with {len(questions)} questions")

    def answer(self, choice_id: str) -> Optional[bool]:
        before = self.state
        self.state = apply_answer(before, choice_id)
        if self.state is before:
            return None
        return self.state.history[-1].correct

    def advance(self) -> None:
        self.state = apply_advance(self.state)
        if self.state.phase is QuizPhase.FINISHED:
            logger.info(f"Quiz session finished: {self.state.score}/{self.state.total}")

    def restart(self) -> None:
        self.state = apply_restart(self.state)
