"""Streamlit frontend for StyleSense."""

import json

import httpx
import streamlit as st

from stylesense.config import get_settings
from stylesense.core.images import prepare_upload

# Configuration
API_URL = get_settings().api_url

# Page config
st.set_page_config(
    page_title="StyleSense",
    page_icon="👗",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS
st.markdown("""
<style>
    .item-tag {
        display: inline-block;
        background: #f3e5f5;
        color: #7b1fa2;
        padding: 2px 8px;
        border-radius: 12px;
        font-size: 12px;
        margin: 2px;
    }
</style>
""", unsafe_allow_html=True)


def get_api_key():
    """Higher-tier API key entered in the sidebar."""
    return st.session_state.get("api_key", "")


def api_headers() -> dict:
    key = get_api_key()
    return {"X-Api-Key": key} if key else {}


def show_error(payload: dict, fallback: str):
    """Pick how to show a typed API error."""
    kind = payload.get("kind")
    message = payload.get("error") or fallback
    if kind == "quota_exceeded":
        st.warning(f"{message} You can add a Pro API key in the sidebar.")
    elif kind == "confirmation_required":
        st.info(message)
    else:
        st.error(message)


def call_api(endpoint: str, method: str = "GET", data: dict = None, files: dict = None):
    """Make API call to the backend."""
    url = f"{API_URL}{endpoint}"
    try:
        with httpx.Client(timeout=120.0, headers=api_headers()) as client:
            if method == "GET":
                response = client.get(url, params=data)
            elif method == "POST":
                if files:
                    response = client.post(url, data=data, files=files)
                else:
                    response = client.post(url, json=data)
            elif method == "DELETE":
                response = client.delete(url)
            else:
                raise ValueError(f"Unsupported method: {method}")

            if response.status_code >= 400:
                try:
                    show_error(response.json(), "Request failed")
                except ValueError:
                    st.error(f"Server Error ({response.status_code}): {response.text[:100]}")
                return None
            return response.json()
    except httpx.RequestError as e:
        st.error(f"Connection error: {e}")
        return None


def stream_tryon(payload: dict, progress_bar):
    """Run a streamed try-on, updating the progress bar. Returns the result event."""
    url = f"{API_URL}/api/tryon/stream"
    try:
        with httpx.Client(timeout=None, headers=api_headers()) as client:
            with client.stream("POST", url, json=payload) as response:
                if response.status_code >= 400:
                    response.read()
                    show_error(response.json(), "Try-on failed")
                    return None

                for line in response.iter_lines():
                    if not line:
                        continue
                    event = json.loads(line)
                    if event["event"] == "progress":
                        progress_bar.progress(
                            (event["current"] - (event["stage"] == "started")) / event["total"],
                            text=f"Layering {event['current']} of {event['total']}",
                        )
                    elif event["event"] == "error":
                        show_error(event, "Try-on failed")
                        return None
                    elif event["event"] == "result":
                        return event
    except httpx.RequestError as e:
        st.error(f"Connection error: {e}")
    return None


def display_tags(tags: str):
    """Render comma-joined tags as chips."""
    chips = " ".join(
        f'<span class="item-tag">{tag.strip()}</span>'
        for tag in tags.split(",") if tag.strip()
    )
    if chips:
        st.markdown(chips, unsafe_allow_html=True)


def wardrobe_tab(wardrobe: list):
    """Upload and browse garments."""
    st.header("My Wardrobe")

    uploaded_file = st.file_uploader(
        "Add a garment",
        type=["jpg", "jpeg", "png", "webp"],
        help="Photograph a single clothing item",
    )

    if uploaded_file and st.button("✨ Analyze & Add", type="primary"):
        files = {"file": (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type)}
        with st.spinner("Analyzing garment with AI..."):
            result = call_api("/api/wardrobe/upload", method="POST", files=files)
        if result:
            st.success(f"Added {result['color']} {result['category']}")
            st.rerun()

    if not wardrobe:
        st.info("Your wardrobe is empty. Upload your first garment!")
        return

    cols = st.columns(4)
    for idx, item in enumerate(wardrobe):
        with cols[idx % len(cols)]:
            st.image(item["image_data"], use_container_width=True)
            st.markdown(f"**{item['category'].title()}** · {item['color']}")
            display_tags(item["tags"])
            if st.button("Remove", key=f"remove_{item['id']}"):
                call_api(f"/api/wardrobe/{item['id']}", method="DELETE")
                st.rerun()


def stylist_tab():
    """Chat with the AI stylist."""
    st.header("AI Stylist")

    if "stylist_chat" not in st.session_state:
        st.session_state.stylist_chat = []

    for message in st.session_state.stylist_chat:
        with st.chat_message(message["role"]):
            st.markdown(message["text"])

    query = st.chat_input("What should I wear to...")
    if query:
        st.session_state.stylist_chat.append({"role": "user", "text": query})
        with st.spinner("Thinking about your look..."):
            result = call_api("/api/stylist", method="POST", data={"query": query})
        if result:
            st.session_state.stylist_chat.append({"role": "assistant", "text": result["advice"]})
        st.rerun()


def tryon_tab(wardrobe: list, has_pro_key: bool):
    """Layer garments onto a user photo."""
    st.header("Virtual Try-On")

    if not wardrobe:
        st.info("Add garments to your wardrobe before trying them on.")
        return

    col1, col2 = st.columns([1, 1])

    with col1:
        photo = st.file_uploader("Your photo", type=["jpg", "jpeg", "png", "webp"], key="user_photo")
        if photo:
            st.session_state.user_photo = prepare_upload(photo.getvalue())
            st.image(st.session_state.user_photo, caption="Your photo", use_container_width=True)

        labels = {item["id"]: f"#{item['id']} {item['color']} {item['category']}" for item in wardrobe}
        selected = st.multiselect(
            "Garments (applied in the order you pick them)",
            options=list(labels.keys()),
            format_func=lambda garment_id: labels[garment_id],
        )

        confirmed = True
        if len(selected) > 1 and not has_pro_key:
            confirmed = st.checkbox(
                "Multi-layer try-on is resource-intensive and may hit free tier limits. "
                "For the best experience, connect a Pro API key in the sidebar. Proceed anyway?"
            )

        can_run = bool(st.session_state.get("user_photo")) and bool(selected) and confirmed
        if st.button("👗 Try On", type="primary", disabled=not can_run):
            progress_bar = st.progress(0.0, text=f"Layering 0 of {len(selected)}")
            result = stream_tryon(
                {
                    "user_photo": st.session_state.user_photo,
                    "garment_ids": selected,
                    "confirmed": confirmed,
                },
                progress_bar,
            )
            progress_bar.empty()
            if result:
                st.session_state.tryon_result = result["image"]
                st.session_state.tryon_items = selected
                if result.get("skipped_layers"):
                    st.warning(f"{result['skipped_layers']} layer(s) came back without an image.")

    with col2:
        if st.session_state.get("tryon_result"):
            st.image(st.session_state.tryon_result, caption="Your look", use_container_width=True)

            name = st.text_input("Outfit name", value="My Outfit")
            if st.button("💾 Save Outfit"):
                result = call_api("/api/outfits", method="POST", data={
                    "name": name,
                    "description": None,
                    "items": st.session_state.get("tryon_items", []),
                    "image_url": st.session_state.tryon_result,
                })
                if result:
                    st.success("Outfit saved!")


def outfits_tab(wardrobe: list):
    """List saved outfits."""
    st.header("Saved Outfits")

    outfits = call_api("/api/outfits") or []
    if not outfits:
        st.info("No saved outfits yet. Try something on and save it!")
        return

    names = {item["id"]: f"{item['color']} {item['category']}" for item in wardrobe}
    for outfit in outfits:
        with st.expander(f"📦 {outfit['name'] or 'Untitled outfit'}"):
            if outfit.get("created_at"):
                st.write(f"Created: {outfit['created_at'][:10]}")
            if outfit.get("image_url"):
                st.image(outfit["image_url"], width=240)
            for garment_id in outfit["items"]:
                st.write(f"- {names.get(garment_id, f'Removed garment #{garment_id}')}")


def main():
    """Main application."""
    st.title("👗 StyleSense")
    st.write("Your AI wardrobe, stylist and fitting room")

    with st.sidebar:
        st.header("Settings")
        st.text_input(
            "Pro API key (optional)",
            type="password",
            key="api_key",
            help="A higher-tier Gemini key avoids quota errors on multi-layer try-ons",
        )
        health = call_api("/api/health") or {}
        st.caption("Server: " + ("online" if health else "offline"))

    wardrobe = call_api("/api/wardrobe") or []

    tab1, tab2, tab3, tab4 = st.tabs(["👚 Wardrobe", "💬 Stylist", "🪞 Try-On", "📦 Outfits"])

    with tab1:
        wardrobe_tab(wardrobe)
    with tab2:
        stylist_tab()
    with tab3:
        tryon_tab(
            wardrobe,
            has_pro_key=bool(get_api_key()) or bool(health.get("gemini_pro_configured")),
        )
    with tab4:
        outfits_tab(wardrobe)


if __name__ == "__main__":
    main()
