"""Renders turn responses for the terminal."""

from typing import TextIO

OVERVIEW_MAX_LENGTH = 120


class ResponseFormatter:
    """Formats the latest assistant entry, its movies and the fun fact."""

    def __init__(self, output: TextIO, show_overview: bool = False):
        self.output = output
        self.show_overview = show_overview

    def render(self, response: dict) -> None:
        messages = response.get("Messages") or []
        latest = next(
            (m for m in reversed(messages) if m.get("role") == "assistant"), None
        )
        if latest is None:
            self._print("\n(no reply)\n")
        else:
            self._print(f"\n{latest.get('text', '')}\n")
            for movie in latest.get("movieList") or []:
                self._print(self._format_movie(movie))

        fact = response.get("FunnyFact")
        if fact:
            self._print(f"\nFun fact: {fact}\n")
        self._print("\n")

    def _format_movie(self, movie: dict) -> str:
        year = (movie.get("releaseDate") or "")[:4]
        title = movie.get("title") or movie.get("originalTitle") or "?"
        rating = movie.get("voteAverage")
        line = f"  - {title}"
        if year:
            line += f" ({year})"
        if rating:
            line += f"  [{rating:.1f}]"
        line += f"  #{movie.get('id')}\n"
        if self.show_overview and movie.get("overview"):
            overview = movie["overview"]
            if len(overview) > OVERVIEW_MAX_LENGTH:
                overview = overview[:OVERVIEW_MAX_LENGTH] + "..."
            line += f"      {overview}\n"
        return line

    def error(self, message: str) -> None:
        self._print(f"\nError: {message}\n\n")

    def _print(self, text: str) -> None:
        self.output.write(text)
