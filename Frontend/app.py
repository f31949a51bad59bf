import streamlit as st
import requests
import os

# Configuration
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")
SUPPORTED_TYPES = ["pdf", "docx", "pptx", "txt", "jpg", "jpeg", "png", "bmp", "gif"]
QUIZ_TYPES = {
    "Multiple choice": "multiple_choice",
    "Enumeration": "enumeration",
    "True / False": "true_false",
}
st.set_page_config(page_title="QuizForge", layout="wide")

# Initialize session state
def init_session():
    session_defaults = {
        "quiz_generated": False,
        "quiz_submitted": False,
        "quiz_data": None,
        "quiz_result": None,
        "summary": None,
        "flashcards": None,
    }
    for key, value in session_defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

def reset_quiz():
    st.session_state.quiz_submitted = False
    st.session_state.quiz_result = None
    for key in list(st.session_state.keys()):
        if key.startswith("answer_"):
            del st.session_state[key]

def error_detail(response) -> str:
    try:
        return response.json().get("detail", "Unknown error")
    except ValueError:
        return response.text or "Unknown error"

def upload_payload(uploaded_file):
    return {"file": (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type or "application/octet-stream")}

init_session()

# UI Components
st.title("📝 QuizForge")
st.subheader("Turn your study material into a quiz")

# Sidebar for document upload
with st.sidebar:
    st.header("Upload Document")
    uploaded_file = st.file_uploader("Choose a file", type=SUPPORTED_TYPES, accept_multiple_files=False)
    quiz_label = st.selectbox("Quiz type", list(QUIZ_TYPES.keys()))
    question_count = st.slider("Number of questions", min_value=1, max_value=20, value=5)

    if uploaded_file is not None:
        size_mb = uploaded_file.size / (1024 * 1024)
        st.caption(f"{uploaded_file.name} ({size_mb:.2f} MB)")

        if st.button("Generate Quiz"):
            with st.spinner("Extracting text and generating questions..."):
                try:
                    response = requests.post(
                        f"{BACKEND_URL}/generate-quiz/",
                        files=upload_payload(uploaded_file),
                        data={"question_count": question_count, "quiz_type": QUIZ_TYPES[quiz_label]},
                        timeout=300
                    )
                    if response.status_code == 200:
                        st.session_state.quiz_data = response.json()
                        st.session_state.quiz_generated = True
                        reset_quiz()
                        st.success("Quiz generated!")
                    else:
                        st.error(f"Error: {error_detail(response)}")
                except requests.RequestException as e:
                    st.error(f"Connection error: {str(e)}")

        col_summary, col_cards = st.columns(2)
        if col_summary.button("Summary"):
            with st.spinner("Summarizing..."):
                try:
                    response = requests.post(f"{BACKEND_URL}/summary/", files=upload_payload(uploaded_file), timeout=300)
                    if response.status_code == 200:
                        st.session_state.summary = response.json()["summary"]
                    else:
                        st.error(f"Error: {error_detail(response)}")
                except requests.RequestException as e:
                    st.error(f"Connection error: {str(e)}")
        if col_cards.button("Flashcards"):
            with st.spinner("Creating flashcards..."):
                try:
                    response = requests.post(f"{BACKEND_URL}/flashcards/", files=upload_payload(uploaded_file), timeout=300)
                    if response.status_code == 200:
                        st.session_state.flashcards = response.json()["flashcards"]
                    else:
                        st.error(f"Error: {error_detail(response)}")
                except requests.RequestException as e:
                    st.error(f"Connection error: {str(e)}")

quiz_tab, study_tab = st.tabs(["Quiz", "Study"])

with study_tab:
    if st.session_state.summary:
        st.header("Summary")
        st.markdown(st.session_state.summary)
    if st.session_state.flashcards:
        st.header("Flashcards")
        for card in st.session_state.flashcards:
            with st.expander(card["front"]):
                st.write(card["back"])
    if not (st.session_state.summary or st.session_state.flashcards):
        st.info("Use the sidebar to create a summary or flashcards")

with quiz_tab:
    if st.session_state.quiz_generated and st.session_state.quiz_data:
        quiz = st.session_state.quiz_data
        for warning in quiz.get("warnings", []):
            st.warning(warning)
        if quiz.get("truncated"):
            st.info(f"Large document: questions cover the first portion only ({quiz['chunk_count']} chunks).")

        with st.form(key="quiz_form"):
            st.subheader("Quiz Questions")
            for i, q in enumerate(quiz["questions"]):
                st.markdown(f"**Q{i + 1}:** {q['question']}")
                if q["type"] == "enumeration":
                    st.text_input("Your answer:", key=f"answer_{i}")
                else:
                    st.radio(
                        f"Select answer for Q{i + 1}:",
                        options=list(range(len(q["choices"]))),
                        format_func=lambda k, choices=q["choices"]: choices[k],
                        key=f"answer_{i}",
                        index=None
                    )

            submitted = st.form_submit_button("Submit Quiz")
            if submitted:
                st.session_state.quiz_submitted = True

        if st.session_state.quiz_submitted:
            with st.spinner("Evaluating answers..."):
                try:
                    answers = [st.session_state.get(f"answer_{i}") for i in range(len(quiz["questions"]))]
                    response = requests.post(
                        f"{BACKEND_URL}/evaluate-quiz/",
                        json={"quiz_id": quiz["quiz_id"], "answers": answers},
                        timeout=60
                    )
                    if response.status_code == 200:
                        st.session_state.quiz_result = response.json()
                    else:
                        st.error(f"Evaluation failed: {error_detail(response)}")
                except requests.RequestException as e:
                    st.error(f"Connection error: {str(e)}")

            if st.session_state.get("quiz_result"):
                result = st.session_state.quiz_result
                st.success(f"## Your Score: {result['score']}/{result['total_questions']} ({result['percentage']:.0f}%)")

                with st.expander("Detailed Results"):
                    for i, q in enumerate(result["questions"]):
                        if q["type"] == "enumeration":
                            user_answer = result["text_answers"][i] or "-"
                            correct = q["correct_answer"]
                            is_correct = user_answer.strip().lower() == correct.strip().lower()
                        else:
                            index = result["user_answers"][i]
                            user_answer = q["choices"][index] if 0 <= index < len(q["choices"]) else "-"
                            correct = q["choices"][q["correct_answer_index"]]
                            is_correct = index == q["correct_answer_index"]
                        status = "✅" if is_correct else "❌"
                        st.markdown(f"{status} **Question {i + 1}:** {q['question']}")
                        st.markdown(f"- Your answer: **{user_answer}**")
                        st.markdown(f"- Correct answer: **{correct}**")
                        if q.get("explanation"):
                            st.markdown(f"- {q['explanation']}")
                        st.divider()

                if st.button("Restart Quiz"):
                    reset_quiz()
                    st.rerun()
    else:
        st.info("📘 Please upload a document to get started")
