def validate_answers(answers):
    """Answers arrive as a JSON object keyed by question id or index."""
    if answers is None:
        return {}
    if not isinstance(answers, dict):
        raise ValueError("Answers must be an object keyed by question.")
    for value in answers.values():
        if value is not None and not isinstance(value, str):
            raise ValueError("Each answer must be a string option value.")
    return answers


def normalise_quiz_answers(answers):
    """Map question-index keys ("0", 1, ...) to ints."""
    normalised = {}
    for key, value in validate_answers(answers).items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            raise ValueError(f"Quiz answer keys must be question indexes, got {key!r}.")
        normalised[index] = value
    return normalised


def validate_id(value, name):
    """Optional record id from a JSON body; numeric strings are accepted."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer.")


def validate_flag(value, name, default=False):
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false.")
    return value


def validate_max_attempts(max_attempts):
    if max_attempts is None:
        return None
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
        raise ValueError("max_attempts must be a positive integer.")
    return max_attempts


def validate_questions(questions):
    if not isinstance(questions, list):
        raise ValueError("Questions must be a list.")
    for question in questions:
        if not isinstance(question, dict):
            raise ValueError("Each question must be a dictionary.")
        if "question" not in question or "options" not in question or "correct_answer" not in question:
            raise ValueError("Each question must have 'question', 'options', and 'correct_answer'.")
        if not isinstance(question['options'], list):
            raise ValueError("'options' must be a list.")
        if question['correct_answer'] not in question['options']:
            raise ValueError("The 'correct_answer' must be one of the options.")
