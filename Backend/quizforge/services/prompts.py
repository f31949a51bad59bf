from langchain_core.prompts import PromptTemplate

from quizforge.models import QuizType

SYSTEM_PROMPT = (
    "You are a helpful AI assistant that creates educational content. "
    "Always respond with valid JSON when requested."
)

multiple_choice_template = """
You are an expert educator who creates high-quality multiple choice questions for studying purposes.

Based on the following text, create exactly {number} multiple choice questions that test understanding of the key concepts.

Text to analyze:
{text}

Requirements:
1. Create exactly {number} questions
2. Each question should have exactly 4 answer choices (A, B, C, D)
3. Questions should test comprehension, analysis, and application of concepts
4. Include one clearly correct answer and three plausible distractors
5. Provide a brief explanation for each correct answer

IMPORTANT: Return ONLY a valid JSON array. Do not include any text before or after the JSON.

Return this exact JSON structure:
[
  {{
    "question": "Your question here?",
    "choices": ["Option A", "Option B", "Option C", "Option D"],
    "correct_answer_index": 0,
    "explanation": "Brief explanation of why this answer is correct",
    "type": "multiple_choice"
  }}
]

The correct_answer_index should be 0, 1, 2, or 3 corresponding to the position in the choices array.
"""

enumeration_template = """
You are an expert educator who creates high-quality enumeration (fill-in-the-blank) questions for studying purposes.

Based on the following text, create exactly {number} enumeration questions that test understanding of the key concepts.

Text to analyze:
{text}

Requirements:
1. Create exactly {number} questions
2. Each question should ask for a specific answer that can be typed in
3. Questions should test recall and understanding of key terms, concepts, or facts
4. Provide the exact correct answer in "correct_answer"; the "choices" content is ignored
5. Provide a brief explanation for each correct answer

IMPORTANT: Return ONLY a valid JSON array. Do not include any text before or after the JSON.

Return this exact JSON structure:
[
  {{
    "question": "What is the term for [concept]?",
    "choices": ["", "", "", ""],
    "correct_answer_index": 0,
    "correct_answer": "Exact Answer",
    "explanation": "Brief explanation of why this answer is correct",
    "type": "enumeration"
  }}
]

The correct_answer should be the exact text that the user needs to type to get the question right.
"""

true_false_template = """
You are an expert educator who creates high-quality true/false questions for studying purposes.

Based on the following text, create exactly {number} true/false questions that test understanding of the key concepts.

Text to analyze:
{text}

Requirements:
1. Create exactly {number} questions
2. Each question should be a clear statement that can be evaluated as true or false
3. Questions should test comprehension and critical thinking
4. Mix of true and false statements
5. The choices must be exactly ["True", "False"]
6. Provide a brief explanation for each correct answer

IMPORTANT: Return ONLY a valid JSON array. Do not include any text before or after the JSON.

Return this exact JSON structure:
[
  {{
    "question": "Statement that can be true or false",
    "choices": ["True", "False"],
    "correct_answer_index": 0,
    "is_true": true,
    "explanation": "Brief explanation of why this answer is correct",
    "type": "true_false"
  }}
]

The correct_answer_index should be 0 for True or 1 for False. The is_true field should match the correct answer.
"""

summary_template = """
Based on the following text, create a comprehensive study summary that highlights the key concepts, main ideas, and important details.

Text:
{text}

Please provide:
1. Key concepts and definitions
2. Main ideas and themes
3. Important details and examples
4. Connections between different parts

Format the summary in a clear, organized manner that would be helpful for studying.
"""

flashcards_template = """
Based on the following text, create exactly {number} flashcards that would be useful for studying.

Text:
{text}

Return your response as a valid JSON array with this exact structure:
[
  {{
    "front": "Question or term",
    "back": "Answer or definition"
  }}
]

Make sure the JSON is valid and properly formatted.
"""

QUIZ_PROMPTS = {
    QuizType.MULTIPLE_CHOICE: PromptTemplate(input_variables=["text", "number"], template=multiple_choice_template),
    QuizType.ENUMERATION: PromptTemplate(input_variables=["text", "number"], template=enumeration_template),
    QuizType.TRUE_FALSE: PromptTemplate(input_variables=["text", "number"], template=true_false_template),
}

summary_prompt = PromptTemplate(input_variables=["text"], template=summary_template)
flashcards_prompt = PromptTemplate(input_variables=["text", "number"], template=flashcards_template)


def _check_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer, got {count!r}")
    return count


def build_quiz_prompt(text: str, question_count: int, quiz_type: QuizType) -> str:
    """Same inputs, same prompt: the source text is embedded verbatim."""
    template = QUIZ_PROMPTS[QuizType.parse(quiz_type)]
    return template.format(text=text, number=_check_count(question_count))


def build_summary_prompt(text: str) -> str:
    return summary_prompt.format(text=text)


def build_flashcards_prompt(text: str, card_count: int) -> str:
    return flashcards_prompt.format(text=text, number=_check_count(card_count))
