from integral_rush.game.errors import UpstreamUnavailableError


class AnswerJudgeUnavailableError(UpstreamUnavailableError):
    code = "E_ANSWER_JUDGE_UNAVAILABLE"
