"""Examples of using feldspar's host operations from Python."""

from feldspar.api import configure_model, lookup_env, prompt
from feldspar.context import FeldsparRuntime
from feldspar.stdlib import init_engine


# Example 1: Direct calls
def example_direct_calls(runtime: FeldsparRuntime):
    """Configure a target and prompt it without a script engine."""
    print("=" * 60)
    print("Example 1: Direct Calls")
    print("=" * 60)

    token = lookup_env("OPENAI_API_KEY").unwrap_or("")
    configure_model(runtime, "https://api.openai.com/v1", token, "gpt-4o-mini", "openai")

    history = [["system", "You are a helpful geography assistant."]]
    reply = prompt(runtime, history, "What is the capital of France?")

    # Failures come back as text, never as exceptions
    if reply.startswith("Error: "):
        print(f"Request failed: {reply}")
    else:
        print(f"Response: {reply}")
    print()


# Example 2: Running a script
def example_script(runtime: FeldsparRuntime):
    """Run a script that uses the registered host functions."""
    print("=" * 60)
    print("Example 2: Script Engine")
    print("=" * 60)

    engine = init_engine(runtime)
    values = engine.run(
        "history = []\n"
        'answer = prompt(history, "Name one prime number.")\n'
        "[len(history), answer]"
    )
    print(f"Values: {values}")
    print()


def main():
    with FeldsparRuntime() as runtime:
        example_direct_calls(runtime)
        example_script(runtime)


if __name__ == "__main__":
    main()
