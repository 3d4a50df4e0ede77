"""Course structure shared by the API and the learner client.

Topic ids double as progress ``section_id`` values; each topic's quiz section is
``<topic id>-quiz`` and each module ends with ``module<N>-quiz``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Topic:
    id: str
    title: str

    @property
    def quiz_id(self) -> str:
        return f"{self.id}-quiz"


@dataclass(frozen=True)
class Module:
    id: int
    title: str
    course_slug: str
    topics: tuple[Topic, ...] = field(default_factory=tuple)

    @property
    def quiz_id(self) -> str:
        return f"module{self.id}-quiz"

    @property
    def topic_ids(self) -> tuple[str, ...]:
        return tuple(t.id for t in self.topics)

    def path(self, topic_id: str) -> str:
        return f"/modules/module{self.id}/{topic_id}"


@dataclass(frozen=True)
class CourseEntry:
    slug: str
    title: str
    description: str


COURSES: tuple[CourseEntry, ...] = (
    CourseEntry(
        slug="crypto-foundations",
        title="Cryptocurrency & Blockchain Foundations",
        description="From the history of money to smart contracts and DeFi.",
    ),
)

MODULES: tuple[Module, ...] = (
    Module(
        id=1,
        title="Fundamentals of Cryptocurrency",
        course_slug="crypto-foundations",
        topics=(
            Topic("digital-currencies", "Introduction to Digital Currencies"),
            Topic("history-of-money", "History and Evolution of Money"),
            Topic("bitcoin", "Bitcoin: The First Cryptocurrency"),
            Topic("altcoins-tokens", "Altcoins and Tokens"),
            Topic("crypto-market", "Understanding the Crypto Market"),
            Topic("getting-started", "Getting Started Safely"),
        ),
    ),
    Module(
        id=2,
        title="Blockchain Technology",
        course_slug="crypto-foundations",
        topics=(
            Topic("blockchain-basics", "Blockchain Basics"),
            Topic("distributed-ledger", "Distributed Ledger Technology"),
            Topic("consensus-mechanisms", "Consensus Mechanisms"),
            Topic("bitcoin-fundamentals", "Bitcoin Fundamentals"),
        ),
    ),
    Module(
        id=3,
        title="Smart Contracts and Applications",
        course_slug="crypto-foundations",
        topics=(
            Topic("blockchain-types", "Types of Blockchains"),
            Topic("ethereum-fundamentals", "Ethereum Fundamentals"),
            Topic("smart-contracts", "Smart Contracts"),
            Topic("development-platforms", "Development Platforms"),
            Topic("scalability-interoperability", "Scalability and Interoperability"),
            Topic("security-risks", "Security Risks"),
            Topic("investment-value", "Investment Value"),
            Topic("practical-applications", "Practical Applications"),
        ),
    ),
)


def get_module(module_id: int) -> Module | None:
    for m in MODULES:
        if m.id == int(module_id):
            return m
    return None


def find_topic(section_id: str) -> tuple[Module, Topic] | None:
    """Resolve a topic or topic-quiz section id to its module and topic."""
    slug = str(section_id or "").strip()
    if slug.endswith("-quiz"):
        slug = slug[: -len("-quiz")]
    for m in MODULES:
        for t in m.topics:
            if t.id == slug:
                return m, t
    return None


@dataclass(frozen=True)
class BadgeEntry:
    name: str
    description: str
    badge_image: str | None = None
    module_id: int | None = None


ACHIEVEMENTS: tuple[BadgeEntry, ...] = (
    BadgeEntry("Crypto Curious", "Completed Fundamentals of Cryptocurrency.", "/badges/module1.svg", 1),
    BadgeEntry("Chain Builder", "Completed Blockchain Technology.", "/badges/module2.svg", 2),
    BadgeEntry("Contract Crafter", "Completed Smart Contracts and Applications.", "/badges/module3.svg", 3),
    BadgeEntry("Foundations Graduate", "Finished every module of the foundations course.", "/badges/graduate.svg"),
)


@dataclass(frozen=True)
class QuizQuestionEntry:
    module_id: int
    order: int
    question: str
    options: tuple[str, ...]
    correct_answer: str
    explanation: str


QUIZ_BANK: tuple[QuizQuestionEntry, ...] = (
    QuizQuestionEntry(
        1,
        1,
        "What is the primary characteristic of digital currencies?",
        (
            "They must be issued by a central bank",
            "They exist only in electronic form",
            "They require physical storage",
            "They can only be used for online purchases",
        ),
        "They exist only in electronic form",
        "Digital currencies exist purely in electronic form, which allows instant transfers and global access.",
    ),
    QuizQuestionEntry(
        1,
        2,
        "What is a stablecoin?",
        (
            "Any cryptocurrency with low volatility",
            "A digital currency pegged to a stable asset",
            "A government-issued digital currency",
            "A type of physical currency",
        ),
        "A digital currency pegged to a stable asset",
        "Stablecoins hold a steady value by pegging to another asset such as the US dollar or gold.",
    ),
    QuizQuestionEntry(
        1,
        3,
        "What is Bitcoin?",
        (
            "A physical form of digital currency",
            "A decentralized digital currency",
            "A government-issued cryptocurrency",
            "A traditional banking system",
        ),
        "A decentralized digital currency",
        "Bitcoin operates without intermediaries like banks or governments.",
    ),
    QuizQuestionEntry(
        2,
        1,
        "What is the function of Bitcoin mining?",
        (
            "To create physical coins",
            "To hack other cryptocurrencies",
            "To secure the network and process transactions",
            "To store Bitcoin in digital wallets",
        ),
        "To secure the network and process transactions",
        "Miners validate transactions and secure the network through computational work.",
    ),
    QuizQuestionEntry(
        2,
        2,
        "When was the Bitcoin whitepaper published?",
        ("October 31, 2008", "January 3, 2009", "May 22, 2010", "December 25, 2008"),
        "October 31, 2008",
        "Satoshi Nakamoto published the whitepaper on October 31, 2008; the genesis block followed in January 2009.",
    ),
    QuizQuestionEntry(
        3,
        1,
        "What is a smart contract?",
        (
            "A paper contract scanned onto a blockchain",
            "Self-executing code whose terms run on a blockchain",
            "A legal agreement reviewed by an AI",
            "A contract signed with a hardware wallet",
        ),
        "Self-executing code whose terms run on a blockchain",
        "Smart contracts execute automatically when their coded conditions are met.",
    ),
    QuizQuestionEntry(
        3,
        2,
        "Which platform popularized general-purpose smart contracts?",
        ("Bitcoin", "Ethereum", "Litecoin", "Ripple"),
        "Ethereum",
        "Ethereum introduced a Turing-complete virtual machine for running arbitrary contracts.",
    ),
)


def quiz_questions(module_id: int) -> tuple[QuizQuestionEntry, ...]:
    return tuple(q for q in QUIZ_BANK if q.module_id == int(module_id))
