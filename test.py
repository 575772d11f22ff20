"""
MINDTRACK TEST SCRIPT - Journal and Coach Selector
==================================================

PURPOSE:
This is a command-line test interface for the MindTrack Coach API.
It lets you switch between journal mode (each line is analyzed for mood) and
coach mode (each line is sent to the wellness coach and the reply is printed
as it streams in).

WHY IT EXISTS:
- Provides an easy way to test the API without the web frontend
- Reads the chat stream exactly the way the browser does
- Useful for development and debugging

USAGE:
    python test.py

    Make sure the server is running first: python run.py

COMMANDS:
    1 - Switch to Journal mode (POST /analyze-sentiment)
    2 - Switch to Coach mode (POST /chat, streamed)
    /history - View the coach conversation so far
    /clear - Forget the conversation and recorded moods
    /quit or /exit - Exit the test interface

HOW IT WORKS:
Journal entries you analyze are remembered as mood samples and sent to the coach
as moodHistory, most recent first, so the coach sees your trend. The coach
conversation is kept locally; the last 10 messages go with each request.
"""

import requests

from mindtrack.utils.streaming import iter_stream_content


# -----------------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------------
# API base URL; change if your server runs on a different host or port.
BASE_URL = "http://localhost:8000"
# Messages sent as conversationHistory, matching the web client.
HISTORY_WINDOW = 10

CONVERSATION = []   # [{"role": "user"|"assistant", "content": str}, ...]
MOODS = []          # [{"mood_label": str, "mood_score": number}, ...] most recent first
CURRENT_MODE = None  # "journal" or "coach"

ERROR_REPLY = "I'm sorry, I'm having trouble responding right now. Please try again in a moment."


# -----------------------------------------------------------------------------
# UI HELPERS
# -----------------------------------------------------------------------------

def print_header():
    print("\n" + "="*60)
    print("MindTrack - Journal & Coach")
    print("="*60)
    print("\nModes:")
    print("  1 = Journal (mood analysis)")
    print("  2 = Coach chat (streamed)")
    print("\nCommands:")
    print("  /history - See coach conversation")
    print("  /clear - Start over")
    print("  /quit - Exit")
    print("="*60 + "\n")


def get_user_input():
    """Get user's input - either mode selection or message."""
    try:
        return input("\nYou: ").strip()
    except (KeyboardInterrupt, EOFError):
        return None


# -----------------------------------------------------------------------------
# API CALLS
# -----------------------------------------------------------------------------

def analyze_entry(text):
    """
    Send a journal entry to /analyze-sentiment and record the mood.

    Like the web client, a failed analysis is reported but not fatal: the entry
    simply has no mood.
    """
    try:
        response = requests.post(f"{BASE_URL}/analyze-sentiment", json={"text": text}, timeout=30)
    except requests.exceptions.ConnectionError:
        return "Cannot connect to backend. Start it with: python run.py"
    except requests.exceptions.Timeout:
        return "Sentiment analysis timed out; entry kept without a mood."

    if response.status_code != 200:
        return f"Sentiment analysis failed ({response.status_code}); entry kept without a mood."

    mood = response.json()
    MOODS.insert(0, {"mood_label": mood.get("mood_label"), "mood_score": mood.get("mood_score")})
    return f"Mood: {mood.get('mood_label')} ({mood.get('mood_score')}/10)"


def stream_coach_reply(message):
    """
    Send a message to /chat and print the reply fragments as they arrive.

    Returns the full reply (fragments joined), or ERROR_REPLY if the request failed.
    """
    payload = {
        "message": message,
        "conversationHistory": CONVERSATION[-HISTORY_WINDOW:],
        "moodHistory": MOODS,
        "recentJournal": [{"has_entry": True}] if MOODS else [],
        "activeChallenges": [],
    }
    reply = ""
    try:
        with requests.post(f"{BASE_URL}/chat", json=payload, stream=True, timeout=60) as response:
            if response.status_code != 200:
                try:
                    detail = response.json().get("error", response.text)
                except ValueError:
                    detail = response.text
                print(f"[error {response.status_code}: {detail}]")
                return ERROR_REPLY

            lines = response.iter_lines(decode_unicode=True)
            for fragment in iter_stream_content(line for line in lines if line):
                print(fragment, end="", flush=True)
                reply += fragment
    except requests.exceptions.ConnectionError:
        print("Cannot connect to backend. Start it with: python run.py")
        return ERROR_REPLY
    except requests.exceptions.Timeout:
        print("Request timed out.")
        return ERROR_REPLY

    if not reply:
        print(ERROR_REPLY)
        return ERROR_REPLY
    print()
    return reply


def format_history():
    if not CONVERSATION:
        return "No messages in this conversation"
    output = f"\nConversation ({len(CONVERSATION)} messages):\n" + "-" * 60 + "\n"
    for i, msg in enumerate(CONVERSATION, 1):
        role = "You" if msg["role"] == "user" else "Coach"
        output += f"{i}. {role}: {msg['content']}\n"
    return output + "-" * 60 + "\n"


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    """
    Main loop: prompt for mode (1=journal, 2=coach), then accept input
    until /quit or /exit. Handles /history, /clear, and mode switching.
    """
    global CURRENT_MODE

    print_header()
    print("Select mode first (1=Journal, 2=Coach):\n")

    while True:
        user_input = get_user_input()
        if user_input is None or user_input in ["/quit", "/exit"]:
            print("\nGoodbye!")
            break

        if user_input == "1":
            CURRENT_MODE = "journal"
            print("Switched to JOURNAL mode\n")
            continue
        elif user_input == "2":
            CURRENT_MODE = "coach"
            print("Switched to COACH mode\n")
            continue
        elif user_input == "/history":
            print(format_history())
            continue
        elif user_input == "/clear":
            CONVERSATION.clear()
            MOODS.clear()
            print("\nCleared. Starting fresh!")
            continue
        elif user_input.startswith("/"):
            print(f"Unknown command: {user_input}")
            continue

        if not user_input:
            continue
        if not CURRENT_MODE:
            print("Please select a mode first (1=Journal or 2=Coach)")
            continue

        if CURRENT_MODE == "journal":
            print(analyze_entry(user_input))
        else:
            print("Coach: ", end="", flush=True)
            reply = stream_coach_reply(user_input)
            CONVERSATION.append({"role": "user", "content": user_input})
            CONVERSATION.append({"role": "assistant", "content": reply})


# Run the interactive loop when this file is executed (python test.py).
if __name__ == "__main__":
    main()
