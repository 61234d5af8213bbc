# fileshare_client/console.py
"""Interactive text menu over ``Client``."""
import sys

MENU = (
    "\n1) List server files\n"
    "2) Download (GET)\n"
    "3) Upload (PUT)\n"
    "4) Quit\n"
)


def print_progress(verb):
    def show(filename, done, total):
        sys.stdout.write(f"\r{verb} {done} / {total} bytes")
        if done >= total:
            sys.stdout.write("\n")
        sys.stdout.flush()
    return show


def login(client, input_fn=input, password_fn=None, output=print):
    username = input_fn("Login: ")
    password = (password_fn or input_fn)("Password: ")
    ok, msg = client.authenticate(username, password)
    output(msg)
    return ok


def menu_loop(client, input_fn=input, output=print):
    """Run the menu until the user quits or the connection drops."""
    while client.connected:
        output(MENU)
        choice = input_fn("Choose: ").strip()

        if choice == "1":
            files, msg = client.request_list_files()
            if files is None:
                output(msg)
                continue
            output("\n--- Files on server ---")
            for name in files:
                output(name)
            output("-----------------------")
        elif choice == "2":
            filename = input_fn("Enter filename to download: ").strip()
            if not filename:
                continue
            output(f"Downloading '{filename}'...")
            ok, msg = client.request_download_file(filename, print_progress("Downloaded"))
            output(msg)
        elif choice == "3":
            path = input_fn("Enter local file path to upload: ").strip()
            if not path:
                continue
            ok, msg = client.request_upload_file(path, print_progress("Uploaded"))
            output(msg)
        elif choice == "4":
            client.disconnect(send_quit_cmd=True)
            output("Goodbye!")
            return
        else:
            output("Invalid choice.")

    output("Connection to server lost.")
