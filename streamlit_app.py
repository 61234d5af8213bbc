# streamlit_app.py
import streamlit as st
import os
import threading
import time
import queue
from fileshare_client.client import Client
from fileshare_common.config import ClientConfig
from fileshare_common.logging_config import setup_logging

setup_logging("streamlit", "WARNING")
st.set_page_config(page_title="File Sharing Client", layout="wide")

DEFAULTS = ClientConfig.from_env()
MAX_CONCURRENT_DOWNLOADS = 5  # Each download opens its own authenticated connection

# --- Session State Initialization ---
if 'ui_client_instance' not in st.session_state:  # For UI operations like LIST and PUT
    st.session_state.ui_client_instance = None
if 'server_files' not in st.session_state:
    st.session_state.server_files = []
if 'server_host' not in st.session_state:
    st.session_state.server_host = DEFAULTS.host
if 'server_port' not in st.session_state:
    st.session_state.server_port = DEFAULTS.port
if 'credentials' not in st.session_state:
    st.session_state.credentials = None  # (username, password) once AUTH_OK
if 'download_status' not in st.session_state:  # filename -> status dict
    st.session_state.download_status = {}
if 'log_messages' not in st.session_state:
    st.session_state.log_messages = []
if 'update_queue' not in st.session_state:
    st.session_state.update_queue = queue.Queue()
if 'active_download_threads' not in st.session_state:  # filename -> thread
    st.session_state.active_download_threads = {}


# --- Helper Functions ---
def add_log_to_queue(q, message_text):
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    q.put({'type': 'log', 'message': f"[{timestamp}] {message_text}"})


def ui_client_ready():
    client = st.session_state.ui_client_instance
    return client is not None and client.connected and client.authenticated


def progress_updater(q, filename, current_bytes, total_bytes):
    q.put({
        'type': 'file_progress',
        'filename': filename,
        'progress_percent': current_bytes / total_bytes if total_bytes else 1.0,
        'message': f"{current_bytes}/{total_bytes} bytes",
    })


def download_file_worker(host, port, credentials, filename_to_download, q):
    """Worker to download ONE file over its own connection."""
    q.put({'type': 'download_init', 'filename': filename_to_download, 'message': 'Preparing to connect...'})

    worker_client = Client(host, port, downloads_dir=DEFAULTS.downloads_dir, timeout=DEFAULTS.timeout)
    connected, conn_msg = worker_client.connect()
    if connected:
        connected, conn_msg = worker_client.authenticate(*credentials)

    if not connected:
        q.put({'type': 'download_result', 'filename': filename_to_download, 'success': False,
               'message': f"Connection failed: {conn_msg}"})
        add_log_to_queue(q, f"DL Worker ({filename_to_download}): {conn_msg}")
        return

    add_log_to_queue(q, f"DL Worker ({filename_to_download}): Authenticated. Starting download.")
    success, result_msg = worker_client.request_download_file(
        filename_to_download,
        lambda fn, done, total: progress_updater(q, fn, done, total)
    )
    q.put({'type': 'download_result', 'filename': filename_to_download, 'success': success, 'message': result_msg})
    add_log_to_queue(q, f"DL Worker ({filename_to_download}): {'Success' if success else 'Failed'} - {result_msg}")

    worker_client.disconnect(send_quit_cmd=True)


def process_update_queue():
    processed = False
    while True:
        try:
            update = st.session_state.update_queue.get_nowait()
        except queue.Empty:
            break
        processed = True
        filename = update.get('filename')

        if update['type'] == 'log':
            if len(st.session_state.log_messages) > 20:
                st.session_state.log_messages.pop()
            st.session_state.log_messages.insert(0, update['message'])

        elif update['type'] == 'download_init' and filename:
            st.session_state.download_status[filename] = {
                'progress': 0, 'message': update.get('message', 'Initializing...'),
                'completed': False, 'error': False,
            }
        elif update['type'] == 'file_progress' and filename:
            status_entry = st.session_state.download_status.setdefault(
                filename, {'completed': False, 'error': False, 'progress': 0})
            status_entry['progress'] = update['progress_percent']
            status_entry['message'] = update['message']

        elif update['type'] == 'download_result' and filename:
            status_entry = st.session_state.download_status.setdefault(filename, {})
            if update['success']:
                status_entry['completed'] = True
                status_entry['progress'] = 1.0
            else:
                status_entry['error'] = True
            status_entry['message'] = update['message']
            st.session_state.active_download_threads.pop(filename, None)
    return processed


def disconnect_ui_client():
    if st.session_state.ui_client_instance:
        msg = st.session_state.ui_client_instance.disconnect(send_quit_cmd=True)
        add_log_to_queue(st.session_state.update_queue, msg)
    st.session_state.ui_client_instance = None
    st.session_state.credentials = None
    st.session_state.server_files = []
    st.session_state.download_status = {}
    st.session_state.active_download_threads = {}


# --- UI ---
st.title("📁 File Sharing Client")
processed_updates = process_update_queue()

with st.sidebar:
    st.header("Connection")
    st.session_state.server_host = st.text_input("Server Host", value=st.session_state.server_host)
    st.session_state.server_port = st.number_input("Server Port", value=st.session_state.server_port, min_value=1,
                                                   max_value=65535, step=1)

    if not ui_client_ready():
        username = st.text_input("Login")
        password = st.text_input("Password", type="password")
        if st.button("🔗 Connect to Server"):
            client = Client(st.session_state.server_host, int(st.session_state.server_port),
                            downloads_dir=DEFAULTS.downloads_dir, timeout=DEFAULTS.timeout)
            connected, msg = client.connect()
            if connected:
                connected, msg = client.authenticate(username, password)
            add_log_to_queue(st.session_state.update_queue, msg)
            if connected:
                st.session_state.ui_client_instance = client
                st.session_state.credentials = (username, password)
                st.success(msg)
                st.rerun()
            else:
                st.session_state.ui_client_instance = None
                st.error(msg)
    else:
        st.success(f"✅ Connected to {st.session_state.server_host}:{st.session_state.server_port} "
                   f"as {st.session_state.credentials[0]}")
        if st.button("🔌 Disconnect"):
            # Running download workers keep their own connections
            disconnect_ui_client()
            st.info("Disconnected.")
            st.rerun()

    st.markdown("---")
    st.subheader("📜 Client Log")
    log_container = st.container(height=200)
    with log_container:
        for msg_text in st.session_state.log_messages:
            st.caption(msg_text)

if not ui_client_ready():
    st.info("Please log in to the server using the sidebar.")
else:
    client = st.session_state.ui_client_instance
    col1, col2 = st.columns([2, 3])
    with col1:
        st.subheader("📄 Server Files")
        if st.button("🔄 Refresh File List"):
            files, msg = client.request_list_files()
            if files is not None:
                st.session_state.server_files = files
                add_log_to_queue(st.session_state.update_queue, f"File list: {msg}")
            else:
                st.error(msg)
                add_log_to_queue(st.session_state.update_queue, f"List error: {msg}")

        if not st.session_state.server_files:
            st.info("No files on server or list not refreshed.")
        else:
            selected_files_to_download = st.multiselect(
                "Select files to download:", options=st.session_state.server_files
            )

            if selected_files_to_download and st.button(f"⬇️ Download Selected ({len(selected_files_to_download)})"):
                active_thread_count = sum(1 for t in st.session_state.active_download_threads.values() if t.is_alive())
                for filename in selected_files_to_download:
                    thread = st.session_state.active_download_threads.get(filename)
                    if thread is not None and thread.is_alive():
                        add_log_to_queue(st.session_state.update_queue,
                                         f"Skipping {filename}: download already in progress.")
                        continue

                    if active_thread_count >= MAX_CONCURRENT_DOWNLOADS:
                        msg = f"Max concurrent downloads ({MAX_CONCURRENT_DOWNLOADS}) reached. {filename} not started."
                        add_log_to_queue(st.session_state.update_queue, msg)
                        st.warning(msg)
                        continue

                    add_log_to_queue(st.session_state.update_queue, f"Starting download thread for {filename}...")
                    st.session_state.download_status[filename] = {
                        'progress': 0, 'message': 'Initializing thread...', 'completed': False, 'error': False,
                    }
                    thread = threading.Thread(
                        target=download_file_worker,
                        args=(st.session_state.server_host, int(st.session_state.server_port),
                              st.session_state.credentials, filename, st.session_state.update_queue),
                        daemon=True,
                    )
                    st.session_state.active_download_threads[filename] = thread
                    thread.start()
                    active_thread_count += 1
                st.rerun()

        st.subheader("⬆️ Upload")
        uploaded = st.file_uploader("Choose a file to upload")
        if uploaded is not None and st.button(f"Upload '{uploaded.name}'"):
            with st.spinner(f"Uploading {uploaded.name}..."):
                ok, msg = client.upload_stream(uploaded.name, uploaded, uploaded.size)
            add_log_to_queue(st.session_state.update_queue, msg)
            if ok:
                st.success(msg)
            else:
                st.error(msg)

    with col2:
        st.subheader("📥 Download Progress")
        if not st.session_state.download_status:
            st.caption("No downloads active or initiated yet.")
        else:
            for filename_key, status in list(st.session_state.download_status.items()):
                st.markdown(f"**{filename_key}**")
                col_prog_bar, col_prog_status = st.columns([1, 2])
                with col_prog_bar:
                    st.progress(status.get('progress', 0))
                with col_prog_status:
                    message = status.get('message', 'Status unknown')
                    if status.get('error'):
                        st.error(message, icon="🔥")
                    elif status.get('completed'):
                        st.success(message, icon="✅")
                    else:
                        st.caption(message)

    # Rerun while workers are still reporting
    any_thread_alive = any(t.is_alive() for t in st.session_state.active_download_threads.values())
    if processed_updates or not st.session_state.update_queue.empty() or any_thread_alive:
        time.sleep(0.1)
        st.rerun()

    st.markdown("---")
    st.subheader("📦 Client Downloads Directory")
    st.info(f"Files are downloaded to: `{os.path.abspath(DEFAULTS.downloads_dir)}`")
    if os.path.isdir(DEFAULTS.downloads_dir):
        downloaded_files_list = [f for f in os.listdir(DEFAULTS.downloads_dir) if
                                 os.path.isfile(os.path.join(DEFAULTS.downloads_dir, f))]
        if downloaded_files_list:
            st.write("Files in downloads directory:")
            for f_name in downloaded_files_list:
                st.caption(f"- {f_name}")
        else:
            st.caption("No files in the download directory yet.")
