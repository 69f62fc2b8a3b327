"""LLM prompts for the repository report.

Pure rendering: same snapshot in, same messages out. The section
headings in SYSTEM_PROMPT are the ones the client-side segmenter maps
to icons (see constants.SECTION_ICONS), and the fallback sentences are
relied on by the model when describing contribution opportunities.
"""

from reposcope.constants import (
    LABEL_DELIMITER,
    MAX_ISSUES,
    NO_ISSUES_FALLBACK,
    NO_LABELS,
    NO_TOPICS,
    README_FALLBACK,
    README_MAX_CHARS,
)
from reposcope.ingestion.schemas import IssueSummary, RepositorySnapshot

SYSTEM_PROMPT = """\
You are a Senior CNCF Architect & Open Source Maintainer. Analyze the given \
GitHub repository data and provide a comprehensive, structured analysis.

You MUST format your response using these exact sections with markdown:

## 🏗️ Project Overview
Summarize purpose and goals.

## ⚙️ Tech Stack Analysis
Identify languages, frameworks, tools.

## 🧩 Architecture Pattern
Identify: Microservices / Monolith / Operator / CLI / Library / Framework / etc.

## 📊 Repository Health Score: X/100
Score 0-100 considering: stars, recent activity, open issues, beginner issues, \
README quality. Justify clearly.

## 🐛 Good First Issues
List issues labeled "good first issue", "help wanted", "beginner". If none, say so.

## 🎯 Contribution Difficulty: [Easy/Medium/Hard]
Explain reasoning.

## 🚀 Open Source Onboarding Plan
Step-by-step beginner guide to contribute to this project."""


def render_issue(index: int, issue: IssueSummary) -> str:
    """One numbered issue line; ``index`` is 1-based."""
    labels = LABEL_DELIMITER.join(issue.labels) or NO_LABELS
    return (
        f"{index}. **{issue.title}** — Labels: [{labels}]"
        f" — Comments: {issue.comments}"
    )


def render_issues(issues: tuple[IssueSummary, ...]) -> str:
    if not issues:
        return NO_ISSUES_FALLBACK
    return "\n".join(
        render_issue(idx, issue)
        for idx, issue in enumerate(issues, start=1)
    )


def build_user_prompt(snapshot: RepositorySnapshot) -> str:
    """Render stats, README excerpt and open issues into the user message."""
    stats = snapshot.stats
    topics = LABEL_DELIMITER.join(stats.topics) or NO_TOPICS
    readme = snapshot.readme or README_FALLBACK

    return (
        f"Analyze this GitHub repository: "
        f"**{snapshot.owner}/{snapshot.repo}**\n"
        "\n"
        "**Repository Stats:**\n"
        f"- ⭐ Stars: {stats.stars}\n"
        f"- 🍴 Forks: {stats.forks}\n"
        f"- 🐛 Open Issues: {stats.open_issues}\n"
        f"- 💻 Language: {stats.language}\n"
        f"- 📜 License: {stats.license}\n"
        f"- 📅 Last Updated: {stats.last_updated}\n"
        f"- 📝 Description: {stats.description}\n"
        f"- 🏷️ Topics: {topics}\n"
        "\n"
        f"**README (first {README_MAX_CHARS} chars):**\n"
        "```\n"
        f"{readme}\n"
        "```\n"
        "\n"
        f"**Open Issues (up to {MAX_ISSUES}):**\n"
        f"{render_issues(snapshot.issues)}"
    )


def build_messages(
    snapshot: RepositorySnapshot,
) -> list[dict[str, str]]:
    """System/user message pair for the chat-completions request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(snapshot)},
    ]
