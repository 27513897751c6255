# Load with:  feldspar examples/chat.py
#
# Reads the key from OPENAI_API_KEY, points the runtime at OpenAI, and keeps
# a conversation history the REPL session can extend with ask("...").

key = lookup_env("OPENAI_API_KEY")
if key.ok:
    configure_model("https://api.openai.com/v1", key.value, "gpt-4o-mini", "openai")
else:
    print("OPENAI_API_KEY not set, trying a local ollama server")
    configure_model("http://localhost:11434", "", "llama3", "ollama")

history = [["system", "You are a concise assistant. Answer in one or two sentences."]]


def ask(message):
    reply = prompt(history, message)
    if reply.startswith("Error: "):
        return reply
    history.append(["user", message])
    history.append(["assistant", reply])
    return reply


weather = tool_new(
    "get_weather",
    "Look up the current weather for a city",
    [["city", tool_schema_string()], ["days", tool_schema_number()], ["metric", tool_schema_bool()]],
    "weather_handler",
)

print(tool_describe(weather))
